from __future__ import annotations

import numpy as np
import pytest

from pong_reinforce.model import PolicyNetwork


class FixedRng:
    """Stands in for a numpy Generator whose next uniform draw is known."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def policy() -> PolicyNetwork:
    return PolicyNetwork(rng=np.random.default_rng(7))


@pytest.fixture
def state() -> np.ndarray:
    return np.array([0.3, -0.2, 0.5, 0.1, -0.4])
