"""
Pytest configuration for promptrouter tests: validates the environment,
registers markers, and provides engines backed by fake models so no
weights are ever downloaded.
"""

import sys

import pytest

from promptrouter.inference import ClassificationEngine, SimilarityEngine
from promptrouter.routing import RoutingDecisionEngine
from tests.fakes import FakeSentenceEncoder, FakeZeroShotPipeline

# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def fake_pipeline():
    return FakeZeroShotPipeline()


@pytest.fixture
def fake_encoder():
    return FakeSentenceEncoder()


@pytest.fixture
def classifier(fake_pipeline):
    engine = ClassificationEngine(loader=lambda: fake_pipeline, max_queue_size=16)
    engine.start(timeout=5)
    yield engine
    engine.stop(timeout=5)


@pytest.fixture
def similarity_engine(fake_encoder):
    engine = SimilarityEngine(loader=lambda: fake_encoder, max_queue_size=16)
    engine.start(timeout=5)
    yield engine
    engine.stop(timeout=5)


@pytest.fixture
def decision_engine(classifier, similarity_engine):
    return RoutingDecisionEngine(classifier, similarity_engine)


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Validate test environment and configure pytest with custom markers."""
    missing = []
    for mod in ("httpx", "fastapi", "pydantic", "pydantic_settings", "prometheus_client", "numpy"):
        try:
            __import__(mod)
        except ImportError:
            missing.append(mod)

    if missing:
        banner = "=" * 70
        print(
            f"\n{banner}\n TEST ENVIRONMENT ERROR\n{banner}\n"
            f"\n Missing dependencies: {', '.join(missing)}\n"
            f"\n Run: pip install -e '.[test]'\n\n{banner}",
            file=sys.stderr,
        )
        raise SystemExit(1)

    config.addinivalue_line(
        "markers", "unit: Fast unit tests with no external dependencies"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds"
    )
