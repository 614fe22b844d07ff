"""
Inference Engines
=================

Each engine owns one model behind a dedicated worker thread:
- ClassificationEngine: zero-shot multi-label classification (transformers)
- SimilarityEngine: sentence embedding cosine similarity (sentence-transformers)
"""

from .classification import (
    DEFAULT_CLASSIFICATION_MODEL,
    ClassificationEngine,
    LabelScore,
    load_zero_shot_pipeline,
    select_best_label,
)
from .similarity import (
    DEFAULT_EMBEDDING_MODEL,
    SimilarityEngine,
    cosine_similarity,
    is_similar,
    load_sentence_transformer,
)
from .worker import CancellationToken, InferenceWorker

__all__ = [
    "CancellationToken",
    "ClassificationEngine",
    "cosine_similarity",
    "DEFAULT_CLASSIFICATION_MODEL",
    "DEFAULT_EMBEDDING_MODEL",
    "InferenceWorker",
    "is_similar",
    "LabelScore",
    "load_sentence_transformer",
    "load_zero_shot_pipeline",
    "select_best_label",
    "SimilarityEngine",
]
