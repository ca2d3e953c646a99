"""Random AI implementation for Tablut.

Selects uniformly random legal moves using the per-instance RNG on
:class:`BaseAI`. Intended for tests and as a baseline opponent.
"""

from __future__ import annotations

from ..models import GameState, Move
from .base import BaseAI


class RandomAI(BaseAI):
    """AI that selects random valid moves."""

    engine_type = "random"

    def _search(self, game_state: GameState, valid_moves: list[Move]) -> Move | None:
        return self.get_random_element(valid_moves)

    def evaluate_position(self, game_state: GameState) -> float:
        """Return a small random evaluation; RandomAI does not judge positions."""
        _ = game_state
        return self.rng.uniform(-0.1, 0.1)
