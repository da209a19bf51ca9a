"""
Pytest configuration and shared fixtures.
"""
import random

import pytest

from minesweeper_server import server
from minesweeper_server.board import Board
from minesweeper_server.registry import GameRegistry
from minesweeper_server.settings import ServerConfig


# ============================================================================
# Board Fixtures
# ============================================================================

@pytest.fixture
def corner_mine_board() -> Board:
    """3x3 board with a single mine in the top-left corner."""
    return Board.with_mines(3, [(0, 0)])


@pytest.fixture
def two_mine_board() -> Board:
    """2x2 board whose first row is all mines."""
    return Board.with_mines(2, [(0, 0), (0, 1)])


@pytest.fixture
def empty_board() -> Board:
    """5x5 board with no mines for cascade testing."""
    return Board.with_mines(5, [])


@pytest.fixture
def walled_board() -> Board:
    """
    5x5 board with a wall of mines down column 2.

    Columns 0-1 and 3-4 form two zero regions separated by the wall.
    """
    return Board.with_mines(5, [(x, 2) for x in range(5)])


# ============================================================================
# Registry Fixtures
# ============================================================================

@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible layouts."""
    return random.Random(1234)


@pytest.fixture
def registry(rng: random.Random) -> GameRegistry:
    """Empty registry with a deterministic mine layout generator."""
    return GameRegistry(rng=rng)


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def client(monkeypatch, registry: GameRegistry):
    """Flask test client backed by a fresh registry."""
    monkeypatch.setattr(server, "registry", registry)
    monkeypatch.setattr(server, "config", ServerConfig())
    server.app.config["TESTING"] = True
    return server.app.test_client()
