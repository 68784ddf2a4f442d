import multiprocessing as mp

import numpy as np
import pytest

from spherepi.config import ExperimentConfig
from spherepi.seeding import MemoryStateStore, generate_states


class ConstantSource:
    """Uniform source stub that always draws the same value."""
    def __init__(self, value: float = 0.4):
        self.value = value
        self.draws = 0

    def random(self, size):
        out = np.full(size, self.value, dtype=float)
        self.draws += out.size
        return out


@pytest.fixture(scope="session", autouse=True)
def _set_spawn_start_method():
    try:
        mp.set_start_method("spawn")
    except RuntimeError:
        pass  # already set


@pytest.fixture
def constant_source():
    """Fixture providing a stub source that always returns 0.4"""
    return ConstantSource(0.4)


@pytest.fixture
def states():
    """Four MT19937 states from a fixed seed"""
    return generate_states(4, seed=1234)


@pytest.fixture
def store(states):
    """In-memory store over the fixed states"""
    return MemoryStateStore(states)


@pytest.fixture
def small_config():
    """Small, fast experiment configuration"""
    return ExperimentConfig(
        replicate_count=4,
        points_per_replicate=20_000,
        block_size=7_000,
        backend="thread",
    )
