"""
Minimax AI with alpha-beta pruning for Tablut.

Depth-limited search over the rules engine's successor states with the
static evaluation of :class:`HeuristicEvaluator` at the cutoff. Scores are
always from this AI's side's perspective: the root and every even ply
maximise, odd plies minimise.
"""

from __future__ import annotations

import logging
import math
import time
from typing import List, Optional

from ..errors import RulesViolationError
from ..models import AIConfig, GameState, Move, Side
from ..rules.interfaces import RulesEngine
from .heuristic_ai import HeuristicAI

logger = logging.getLogger(__name__)


class MinimaxAI(HeuristicAI):
    """AI that uses minimax with alpha-beta pruning.

    ``config.search_depth`` bounds the search: the root sits at depth 0 and
    any node at ``depth >= search_depth`` is scored statically, so depths 0
    and 1 both score each root move by the position it produces.
    ``config.use_pruning`` can be turned off to verify that pruning never
    changes the chosen move.
    """

    engine_type = "minimax"

    def __init__(
        self,
        side: Side,
        config: Optional[AIConfig] = None,
        rules_engine: Optional[RulesEngine] = None,
    ) -> None:
        super().__init__(side, config, rules_engine)
        self.max_depth: int = self.config.search_depth
        self.nodes_visited: int = 0

    def _search(self, game_state: GameState, valid_moves: List[Move]) -> Optional[Move]:
        start = time.perf_counter()
        self.nodes_visited = 0

        best_move: Optional[Move] = None
        best_score = -math.inf
        alpha = -math.inf
        for move in valid_moves:
            try:
                child = self.rules_engine.apply_move(game_state, move)
            except RulesViolationError as e:
                logger.debug("Root move %s rejected: %s", move, e)
                continue
            score = self._minimax(child, 1, alpha, math.inf, False)
            if best_move is None or score > best_score:
                best_move, best_score = move, score
            # Raising alpha tightens later siblings; no root move is skipped.
            alpha = max(alpha, best_score)

        self.last_search_stats = {
            "nodes_visited": self.nodes_visited,
            "score": best_score if best_move is not None else 0.0,
            "elapsed_ms": (time.perf_counter() - start) * 1000.0,
        }
        logger.debug(
            "Minimax depth=%d nodes=%d best=%s score=%.1f",
            self.max_depth,
            self.nodes_visited,
            best_move,
            self.last_search_stats["score"],
        )
        return best_move

    def _minimax(
        self,
        state: GameState,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
    ) -> float:
        """Alpha-beta value of ``state`` from this AI's perspective."""
        self.nodes_visited += 1
        if depth >= self.max_depth or state.is_terminal:
            return self.evaluator.evaluate(state)

        moves = self.rules_engine.get_valid_moves(state)
        if not moves:
            return self.evaluator.evaluate(state)

        best = -math.inf if maximizing else math.inf
        explored = False
        for move in moves:
            try:
                child = self.rules_engine.apply_move(state, move)
            except RulesViolationError:
                continue
            explored = True
            value = self._minimax(child, depth + 1, alpha, beta, not maximizing)
            if maximizing:
                best = max(best, value)
                alpha = max(alpha, best)
            else:
                best = min(best, value)
                beta = min(beta, best)
            if self.config.use_pruning and beta <= alpha:
                break

        if not explored:
            return self.evaluator.evaluate(state)
        return best
