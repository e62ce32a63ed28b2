from __future__ import annotations
from typing import Any, List, Sequence
import pytest # type: ignore

def pytest_configure(config):
    """Add markers to the pytest configuration."""
    config.addinivalue_line("markers", "quick: mark test as quick to run")
    config.addinivalue_line("markers", "full: mark test as part of the full test suite")
    config.addinivalue_line("markers", "slow: mark test as very slow to run")

def ground_truth_unique_naive(stream: Sequence[Any]) -> int:
    """Exact distinct count by sorting and deduplicating a copy."""
    ordered = sorted(stream)
    return sum(1 for i, x in enumerate(ordered) if i == 0 or x != ordered[i - 1])

class StubRandom:
    """Random source with fixed answers for sampling and thinning draws."""

    def __init__(self, sample_draw: float = 0.0, thin_draw: float = 0.9):
        self.sample_draw = sample_draw
        self.thin_draw = thin_draw
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.sample_draw

    def random_array(self, n: int) -> List[float]:
        self.calls += n
        return [self.thin_draw] * n

@pytest.fixture
def example_stream():
    """Small stream with four distinct values."""
    return [1, 10, 20, 10, 10, 30, 20, 10, 20, 20, 1, 1, 1]

@pytest.fixture
def ground_truth():
    return ground_truth_unique_naive

@pytest.fixture
def stub_random():
    """Factory for StubRandom instances."""
    return StubRandom
