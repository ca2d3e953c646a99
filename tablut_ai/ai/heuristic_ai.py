"""
Heuristic AI implementation for Tablut.

This agent scores every legal move with the fast move score of
:class:`HeuristicEvaluator` and plays the best one. It also owns the
evaluator plumbing (weight profile, seeded RNG, move ordering) shared by
the tree-search AIs that subclass it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..models import AIConfig, GameState, Move, Side
from ..rules.interfaces import RulesEngine
from .base import BaseAI
from .evaluator import HeuristicEvaluator
from .heuristic_weights import get_weights

logger = logging.getLogger(__name__)


class HeuristicAI(BaseAI):
    """Greedy one-ply player driven by the fast move score."""

    engine_type = "heuristic"

    def __init__(
        self,
        side: Side,
        config: Optional[AIConfig] = None,
        rules_engine: Optional[RulesEngine] = None,
    ):
        super().__init__(side, config, rules_engine)
        self.evaluator = HeuristicEvaluator(
            side,
            weights=get_weights(self.config.heuristic_profile_id),
            rng=self.rng,
        )

    def _search(self, game_state: GameState, valid_moves: List[Move]) -> Optional[Move]:
        scores = self.evaluator.score_moves(game_state, valid_moves)
        best_index = max(range(len(valid_moves)), key=scores.__getitem__)
        self.last_search_stats = {"score": float(scores[best_index])}
        return valid_moves[best_index]

    def order_moves(self, game_state: GameState, moves: List[Move]) -> List[Move]:
        """Return ``moves`` sorted by fast score, best first (stable on ties)."""
        scores = self.evaluator.score_moves(game_state, moves)
        order = sorted(range(len(moves)), key=lambda i: -scores[i])
        return [moves[i] for i in order]

    def evaluate_position(self, game_state: GameState) -> float:
        return self.evaluator.evaluate(game_state)

    def get_evaluation_breakdown(self, game_state: GameState) -> Dict[str, float]:
        return self.evaluator.breakdown(game_state)
