"""
Unit tests for ClassificationEngine and best-label selection.
"""

import math

import pytest

from promptrouter.core.exceptions import InferenceError, ValidationError
from promptrouter.inference import ClassificationEngine, LabelScore, select_best_label
from tests.fakes import FakeZeroShotPipeline


class TestSelectBestLabel:
    def test_strict_maximum_wins(self):
        scores = [LabelScore("a", 0.2), LabelScore("b", 0.9), LabelScore("c", 0.4)]
        assert select_best_label(scores).label == "b"

    def test_first_label_wins_ties(self):
        scores = [LabelScore("a", 0.5), LabelScore("b", 0.5), LabelScore("c", 0.5)]
        assert select_best_label(scores).label == "a"

    def test_later_equal_score_does_not_replace_best(self):
        scores = [LabelScore("a", 0.1), LabelScore("b", 0.6), LabelScore("c", 0.6)]
        assert select_best_label(scores).label == "b"

    def test_nan_never_wins(self):
        scores = [LabelScore("a", math.nan), LabelScore("b", 0.3)]
        assert select_best_label(scores).label == "b"
        assert select_best_label([LabelScore("a", math.nan)]) is None

    def test_zero_scores_have_no_winner(self):
        assert select_best_label([LabelScore("a", 0.0), LabelScore("b", 0.0)]) is None

    def test_empty_input_has_no_winner(self):
        assert select_best_label([]) is None


class TestClassificationEngine:
    def test_scores_returned_in_caller_label_order(self, classifier, fake_pipeline):
        fake_pipeline.scores = {"math": 0.9, "chat": 0.1, "code": 0.5}
        scores = classifier.classify("solve x", ["chat", "code", "math"])

        assert [s.label for s in scores] == ["chat", "code", "math"]
        assert [s.score for s in scores] == pytest.approx([0.1, 0.5, 0.9])

    def test_pipeline_called_multi_label_with_bare_label_template(self, classifier, fake_pipeline):
        classifier.classify("hello", ["greeting"])
        call = fake_pipeline.calls[0]
        assert call["multi_label"] is True
        assert call["hypothesis_template"] == "{}"
        assert call["text"] == "hello"

    def test_custom_hypothesis_template(self):
        pipeline = FakeZeroShotPipeline()
        engine = ClassificationEngine(loader=lambda: pipeline, hypothesis_template="This text is about {}.")
        engine.start(timeout=5)
        try:
            engine.classify("hello", ["greeting"])
        finally:
            engine.stop(timeout=5)
        assert pipeline.calls[0]["hypothesis_template"] == "This text is about {}."

    def test_empty_labels_rejected(self, classifier, fake_pipeline):
        with pytest.raises(ValidationError):
            classifier.classify("hello", [])
        assert fake_pipeline.calls == []

    def test_empty_text_rejected(self, classifier):
        with pytest.raises(ValidationError) as exc_info:
            classifier.classify("", ["a"])
        assert exc_info.value.reason == "prompt.empty"

    def test_pipeline_error_wrapped_as_inference_error(self, classifier, fake_pipeline):
        fake_pipeline.error = MemoryError("out of memory")
        with pytest.raises(InferenceError) as exc_info:
            classifier.classify("hello", ["a"])
        assert exc_info.value.http_status == 500
        assert isinstance(exc_info.value.__cause__, MemoryError)

    def test_missing_label_in_output_is_inference_error(self):
        def pipeline(text, candidate_labels, **kwargs):
            return {"labels": ["other"], "scores": [0.9]}

        engine = ClassificationEngine(loader=lambda: pipeline)
        engine.start(timeout=5)
        try:
            with pytest.raises(InferenceError):
                engine.classify("hello", ["expected"])
        finally:
            engine.stop(timeout=5)

    def test_deterministic_for_same_input(self, classifier, fake_pipeline):
        fake_pipeline.scores = {"a": 0.3, "b": 0.6}
        first = classifier.classify("same", ["a", "b"])
        second = classifier.classify("same", ["a", "b"])
        assert first == second

    @pytest.mark.asyncio
    async def test_aclassify_matches_blocking_result(self, classifier, fake_pipeline):
        fake_pipeline.scores = {"a": 0.3, "b": 0.6}
        scores = await classifier.aclassify("hello", ["a", "b"])
        assert scores == [LabelScore("a", 0.3), LabelScore("b", 0.6)]

    @pytest.mark.asyncio
    async def test_aclassify_wraps_pipeline_errors(self, classifier, fake_pipeline):
        fake_pipeline.error = RuntimeError("tokenizer failure")
        with pytest.raises(InferenceError) as exc_info:
            await classifier.aclassify("hello", ["a"])
        assert exc_info.value.reason == "classification.error"
