"""
Base AI Player class for Tablut
Abstract base class that all AI implementations inherit from
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import AIConfig, AIType, GameState, Move, Side
from ..rules.factory import get_rules_engine
from ..rules.interfaces import RulesEngine
from .decision_log import AIDecisionContext

logger = logging.getLogger(__name__)


def derive_default_seed(config: AIConfig, side: Side) -> int:
    """
    Deterministic RNG seed used when ``AIConfig.rng_seed`` is not set.

    Mixes the AI type and the side into a 32-bit value so two default
    agents playing each other do not share a random stream.
    """
    type_index = list(AIType).index(config.ai_type) + 1
    side_index = 1 if side is Side.DEFENDER else 2
    base = (type_index * 1_000_003) ^ (side_index * 97_911)
    return int(base & 0xFFFFFFFF)


class BaseAI(ABC):
    """Abstract base class for all AI implementations.

    Subclasses implement :meth:`_search`; :meth:`select_move` wraps it with
    state validation, the single-move shortcut, the random fallback and
    decision logging.
    """

    engine_type = "base"

    def __init__(
        self,
        side: Side,
        config: Optional[AIConfig] = None,
        rules_engine: Optional[RulesEngine] = None,
    ):
        """
        Initialize AI player

        Args:
            side: The side this AI plays
            config: AI configuration settings
            rules_engine: Move oracle; defaults to the shared rules engine
        """
        self.side = side
        self.config = config or AIConfig()
        self.move_count = 0
        self.rules_engine: RulesEngine = (
            rules_engine if rules_engine is not None else get_rules_engine()
        )

        # Per-instance RNG used for all stochastic behaviour (tie-break noise,
        # rollout policies, fallbacks).
        if self.config.rng_seed is not None:
            self.rng_seed: int = int(self.config.rng_seed)
        else:
            self.rng_seed = derive_default_seed(self.config, self.side)
        self.rng: random.Random = random.Random(self.rng_seed)

        # Filled by _search implementations; surfaced in the decision log.
        self.last_search_stats: Dict[str, Any] = {}

    def select_move(self, game_state: GameState) -> Optional[Move]:
        """
        Select the move to play in ``game_state``.

        Args:
            game_state: Current game state

        Returns:
            Selected move, or None when the game is over or the side to
            move has no legal move

        Raises:
            InvalidStateError: The state is malformed or it is not this
                AI's turn.
        """
        BoardManager.validate_state(game_state)
        if game_state.is_terminal:
            return None
        if game_state.turn.side is not self.side:
            raise InvalidStateError(
                "Asked to move out of turn",
                context={"side": self.side.value, "turn": game_state.turn.value},
            )

        valid_moves = self.get_valid_moves(game_state)
        if not valid_moves:
            return None

        with AIDecisionContext(
            engine_type=self.engine_type,
            side=self.side.value,
            move_number=game_state.move_count,
            think_time_ms=self.config.think_time_ms,
            search_depth=self.config.search_depth,
        ) as ctx:
            self.last_search_stats = {}
            if len(valid_moves) == 1:
                selected = valid_moves[0]
            else:
                selected = self._search(game_state, valid_moves)
                if selected is None or selected not in valid_moves:
                    logger.warning(
                        "%s selected invalid move %s, falling back to random",
                        self.__class__.__name__,
                        selected,
                    )
                    ctx.record_fallback("no_move" if selected is None else "invalid_move")
                    selected = self.get_random_element(valid_moves)

            stats = self.last_search_stats
            if stats.get("used_fallback"):
                ctx.record_fallback(stats.get("fallback_reason", "search"))
            ctx.record_search_stats(
                iterations=stats.get("iterations", 0),
                tree_size=stats.get("tree_size", 0),
                nodes_visited=stats.get("nodes_visited", 0),
            )
            ctx.record_move(selected, stats.get("score", 0.0), len(valid_moves))

        self.move_count += 1
        return selected

    @abstractmethod
    def _search(self, game_state: GameState, valid_moves: List[Move]) -> Optional[Move]:
        """
        Strategy-specific move choice among ``valid_moves`` (at least two).
        """

    @abstractmethod
    def evaluate_position(self, game_state: GameState) -> float:
        """
        Evaluate the current position from this AI's perspective

        Args:
            game_state: Current game state

        Returns:
            Evaluation score (positive = good for this AI, negative = bad)
        """

    def get_evaluation_breakdown(self, game_state: GameState) -> Dict[str, float]:
        return {"total": self.evaluate_position(game_state)}

    def get_valid_moves(self, game_state: GameState) -> List[Move]:
        """Legal moves for the side to move, from the rules engine."""
        return self.rules_engine.get_valid_moves(game_state)

    def get_random_element(self, items: List[Any]) -> Optional[Any]:
        """
        Get random element from list using the per-instance RNG.

        Returns:
            Random item or None if list is empty
        """
        if not items:
            return None
        return self.rng.choice(items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(side={self.side.value}, type={self.config.ai_type.value})"
