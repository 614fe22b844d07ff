"""
Zero-Shot Classification Engine
===============================

Multi-label zero-shot classification over caller-supplied labels, served
by a dedicated inference worker.

The underlying model is a transformers ``zero-shot-classification``
pipeline (NLI-based, BART large MNLI by default). Each label is scored
independently (``multi_label=True``), so scores do not sum to one.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from promptrouter.core.exceptions import InferenceError, PromptRouterError, ValidationError
from promptrouter.inference.worker import CancellationToken, InferenceWorker

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFICATION_MODEL = "facebook/bart-large-mnli"


@dataclass(frozen=True)
class LabelScore:
    label: str
    score: float


def select_best_label(scores: Iterable[LabelScore]) -> LabelScore | None:
    """
    Pick the label with the strictly greatest score.

    The running best starts at (none, 0.0) and is only replaced on a strict
    ``>``: the earliest label wins ties, NaN never wins, and a list whose
    scores are all zero yields ``None``.
    """
    best: LabelScore | None = None
    best_score = 0.0
    for item in scores:
        if item.score > best_score:
            best, best_score = item, item.score
    return best


def load_zero_shot_pipeline(model_name: str = DEFAULT_CLASSIFICATION_MODEL, device: str | None = None) -> Any:
    """Build a transformers zero-shot pipeline (heavy: call from the worker thread)"""
    from transformers import pipeline

    kwargs: dict[str, Any] = {}
    if device:
        kwargs["device"] = device
    logger.info(f"Loading zero-shot classification model {model_name}")
    return pipeline("zero-shot-classification", model=model_name, **kwargs)


def _ordered_scores(labels: Sequence[str], output: dict[str, Any]) -> list[LabelScore]:
    # The pipeline sorts labels by descending score; restore caller order
    by_label: dict[str, float] = {}
    for label, score in zip(output["labels"], output["scores"], strict=True):
        by_label.setdefault(label, float(score))

    missing = [label for label in labels if label not in by_label]
    if missing:
        raise InferenceError("classification", f"model returned no score for {missing}")
    return [LabelScore(label, by_label[label]) for label in labels]


class ClassificationEngine:
    """
    Zero-shot classifier owning one pipeline instance.

    Blocking (``classify``) and async (``aclassify``) entry points share the
    same worker, so at most one pipeline call runs at a time.
    """

    ENGINE_NAME = "classification"

    def __init__(
        self,
        model_name: str = DEFAULT_CLASSIFICATION_MODEL,
        device: str | None = None,
        loader: Callable[[], Any] | None = None,
        hypothesis_template: str = "{}",
        max_queue_size: int = 256,
        on_complete: Callable[[str, float], None] | None = None,
        on_queue_change: Callable[[str, int], None] | None = None,
    ):
        self.model_name = model_name
        self.hypothesis_template = hypothesis_template
        loader = loader or partial(load_zero_shot_pipeline, model_name, device)
        self._worker = InferenceWorker(
            self.ENGINE_NAME, loader, max_queue_size, on_complete, on_queue_change
        )

    @property
    def ready(self) -> bool:
        return self._worker.ready

    @property
    def queue_depth(self) -> int:
        return self._worker.queue_depth

    def start(self, wait: bool = True, timeout: float | None = None) -> None:
        self._worker.start(wait=wait, timeout=timeout)

    def stop(self, timeout: float = 30.0) -> None:
        self._worker.stop(timeout)

    def _request(self, text: str, labels: Sequence[str]) -> Callable[[Any], list[LabelScore]]:
        if not text:
            raise ValidationError("Text to classify is empty", reason="prompt.empty")
        if not labels:
            raise ValidationError("No candidate labels supplied", reason="router.categories.empty")
        labels = list(labels)
        template = self.hypothesis_template

        def run(pipe: Any) -> list[LabelScore]:
            output = pipe(
                text,
                candidate_labels=labels,
                multi_label=True,
                hypothesis_template=template,
            )
            return _ordered_scores(labels, output)

        return run

    def classify(
        self,
        text: str,
        labels: Sequence[str],
        cancel_token: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> list[LabelScore]:
        """
        Score every label against ``text``.

        Returns:
            One LabelScore per label, in the order the labels were given

        Raises:
            ValidationError: Empty text or label list
            InferenceError: The pipeline call failed
        """
        request = self._request(text, labels)
        try:
            return self._worker.call(request, cancel_token, timeout)
        except PromptRouterError:
            raise
        except Exception as exc:
            raise InferenceError(self.ENGINE_NAME, f"classification failed: {exc}") from exc

    async def aclassify(
        self,
        text: str,
        labels: Sequence[str],
        cancel_token: CancellationToken | None = None,
    ) -> list[LabelScore]:
        """Async variant of ``classify``; the pipeline still runs on the worker thread"""
        request = self._request(text, labels)
        try:
            return await self._worker.run(request, cancel_token)
        except PromptRouterError:
            raise
        except Exception as exc:
            raise InferenceError(self.ENGINE_NAME, f"classification failed: {exc}") from exc
