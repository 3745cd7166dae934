"""
Global pytest fixtures for the shortmap test suite.

Responsibilities:
    - Provide isolated DualIndex and strategy fixtures for direct testing
    - Provide a MappingEngine fixture wired to both
    - Provide a tiny-space engine for exercising collisions and exhaustion

Every fixture builds fresh objects, so no test sees another test's records
or counter.
"""

import pytest

from shortmap.manager.engine import MappingEngine
from shortmap.manager.strategies import ScrambledSequenceStrategy
from shortmap.storage.dual_index import DualIndex


@pytest.fixture
def index() -> DualIndex:
    """Fresh dual index with the default bucket count."""
    return DualIndex(bucket_count=1009)


@pytest.fixture
def strategy() -> ScrambledSequenceStrategy:
    """Scrambled strategy with the production modulus and multiplier."""
    return ScrambledSequenceStrategy(modulus=1 << 40, multiplier=36_779_219, start=1)


@pytest.fixture
def engine(index: DualIndex, strategy: ScrambledSequenceStrategy) -> MappingEngine:
    """
    Provide a MappingEngine wired to the index and strategy fixtures.

    LLM Prompt Example:
        "Show how injecting the index and strategy keeps engine tests focused
        and independent of environment configuration."
    """
    eng = MappingEngine(index=index, strategy=strategy)
    yield eng
    eng.shutdown()


@pytest.fixture
def tiny_engine() -> MappingEngine:
    """Engine over a 2**3 scramble space and a single bucket, so chains and exhaustion are easy to reach."""
    eng = MappingEngine(
        index=DualIndex(bucket_count=1),
        strategy=ScrambledSequenceStrategy(modulus=8, multiplier=5, start=1),
    )
    yield eng
    eng.shutdown()
