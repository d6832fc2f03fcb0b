"""
Pytest fixtures for the 2048 tests.
"""

import random

import pytest

from game import GameManager
from grid import Grid


@pytest.fixture
def manager() -> GameManager:
    """Seeded manager so spawns are reproducible."""
    return GameManager(rng=random.Random(1234))


@pytest.fixture
def make_grid(manager):
    """Builds a grid from row-major values (0 = empty) with ids from the manager."""
    def _make(rows):
        return Grid.from_values(rows, manager.new_tile_id)
    return _make
