"""
Sentence Similarity Engine
==========================

Cosine similarity between sentence embeddings produced by a
sentence-transformers model (all-MiniLM-L12-v2 by default).

Only the encode call runs on the inference worker; the cosine itself is
cheap numpy arithmetic done by the caller. Degenerate vectors never raise:
they yield ``nan``, which ``is_similar`` always treats as a miss.
"""

import logging
import math
from collections.abc import Callable
from functools import partial
from typing import Any

import numpy as np

from promptrouter.core.exceptions import InferenceError, PromptRouterError
from promptrouter.inference.worker import CancellationToken, InferenceWorker

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L12-v2"


def cosine_similarity(a: Any, b: Any) -> float:
    """
    ``dot(a, b) / (|a| * |b|)`` in float64.

    Returns ``nan`` for mismatched or empty vectors, a zero norm, or any
    non-finite intermediate. Finite results are clipped to [-1, 1].
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.shape != b.shape or a.size == 0:
        return math.nan

    with np.errstate(all="ignore"):
        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm == 0.0 or not np.isfinite(norm):
            return math.nan
        score = float(np.dot(a, b) / norm)

    if not math.isfinite(score):
        return math.nan
    return min(1.0, max(-1.0, score))


def is_similar(score: float, temperature: float) -> bool:
    """A score passes when it is finite and at least ``temperature``"""
    return math.isfinite(score) and score >= temperature


def load_sentence_transformer(model_name: str = DEFAULT_EMBEDDING_MODEL, device: str | None = None) -> Any:
    """Load the embedding model (heavy: call from the worker thread)"""
    from sentence_transformers import SentenceTransformer

    logger.info(f"Loading sentence embedding model {model_name}")
    return SentenceTransformer(model_name, device=device)


class SimilarityEngine:
    """Embedding similarity over one shared sentence-transformers model"""

    ENGINE_NAME = "similarity"

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        device: str | None = None,
        loader: Callable[[], Any] | None = None,
        max_queue_size: int = 256,
        on_complete: Callable[[str, float], None] | None = None,
        on_queue_change: Callable[[str, int], None] | None = None,
    ):
        self.model_name = model_name
        loader = loader or partial(load_sentence_transformer, model_name, device)
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

    @staticmethod
    def _encode_pair(text_a: str, text_b: str) -> Callable[[Any], Any]:
        def run(model: Any) -> Any:
            return model.encode([text_a, text_b], convert_to_numpy=True, show_progress_bar=False)

        return run

    @staticmethod
    def _score(embeddings: Any) -> float:
        if len(embeddings) != 2:
            raise InferenceError("similarity", f"expected 2 embeddings, got {len(embeddings)}")
        return cosine_similarity(embeddings[0], embeddings[1])

    def similarity(
        self,
        text_a: str,
        text_b: str,
        cancel_token: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> float:
        """
        Cosine similarity of the two texts' embeddings.

        Identical strings score exactly 1.0 without touching the model.

        Raises:
            InferenceError: The encode call failed
        """
        if text_a == text_b:
            return 1.0
        try:
            embeddings = self._worker.call(self._encode_pair(text_a, text_b), cancel_token, timeout)
            return self._score(embeddings)
        except PromptRouterError:
            raise
        except Exception as exc:
            raise InferenceError(self.ENGINE_NAME, f"similarity failed: {exc}") from exc

    async def asimilarity(
        self,
        text_a: str,
        text_b: str,
        cancel_token: CancellationToken | None = None,
    ) -> float:
        """Async variant of ``similarity``"""
        if text_a == text_b:
            return 1.0
        try:
            embeddings = await self._worker.run(self._encode_pair(text_a, text_b), cancel_token)
            return self._score(embeddings)
        except PromptRouterError:
            raise
        except Exception as exc:
            raise InferenceError(self.ENGINE_NAME, f"similarity failed: {exc}") from exc
