"""
Shared pytest fixtures for tablut_ai tests.

Game state fixtures are function-scoped; states are immutable so sharing
them would be safe, but fresh fixtures keep tests independent of order.
"""

import pytest

from tablut_ai.board_manager import BoardManager
from tablut_ai.models import AIConfig, GameState
from tablut_ai.rules.default_engine import DefaultRulesEngine


@pytest.fixture
def rules_engine() -> DefaultRulesEngine:
    return DefaultRulesEngine()


@pytest.fixture
def initial_state() -> GameState:
    return BoardManager.initial_state()


@pytest.fixture
def fast_config() -> AIConfig:
    """Small, seeded budget so search tests stay quick and reproducible."""
    return AIConfig(
        think_time_ms=5_000,
        max_iterations=60,
        rollout_max_moves=20,
        search_depth=2,
        heuristic_profile_id="heuristic_v1_deterministic",
        rng_seed=1234,
    )

