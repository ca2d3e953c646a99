"""Structured AI decision logging.

Every move returned by :meth:`BaseAI.select_move` produces one
:class:`AIDecisionLog` entry, logged as JSON at INFO on this module's logger.

Usage:
    from tablut_ai.ai.decision_log import AIDecisionContext

    with AIDecisionContext(engine_type="mcts", side="defender") as ctx:
        move = search()
        ctx.record_move(move, score=0.62)
        ctx.record_search_stats(iterations=812, tree_size=790)
    # Decision is logged on exit
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class AIDecisionLog:
    """One AI move decision."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    engine_type: str = ""  # random, heuristic, minimax, mcts
    side: str = ""
    move_number: int = 0

    # Budget
    think_time_ms: int = 0
    search_depth: int = 0

    # Outcome
    time_ms: float = 0.0
    chosen_move: str = ""
    move_score: float = 0.0
    legal_moves: int = 0

    # Diagnostics
    iterations: int = 0
    tree_size: int = 0
    nodes_visited: int = 0

    used_fallback: bool = False
    fallback_reason: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    def summary(self) -> str:
        """Human-readable summary."""
        parts = [
            f"[{self.engine_type}]",
            f"side={self.side}",
            f"move={self.chosen_move}",
            f"score={self.move_score:.3f}",
            f"time={self.time_ms:.1f}ms",
        ]
        if self.iterations > 0:
            parts.append(f"iters={self.iterations}")
        if self.search_depth > 0:
            parts.append(f"depth={self.search_depth}")
        if self.used_fallback:
            parts.append(f"fallback={self.fallback_reason}")
        return " ".join(parts)


def log_ai_decision(decision: AIDecisionLog, log_level: int = logging.INFO) -> None:
    """Log ``decision`` as a JSON line.

    The structured dict is also attached to the record as ``ai_decision``
    for handlers that ship records elsewhere.
    """
    if not logger.isEnabledFor(log_level):
        return
    logger.log(
        log_level,
        decision.to_json(),
        extra={"ai_decision": decision.to_dict()},
    )


class AIDecisionContext:
    """Context manager timing one decision and logging it on exit.

    Exceptions raised inside the block are recorded on the entry, logged at
    ERROR and then propagated.
    """

    def __init__(
        self,
        engine_type: str = "",
        side: str = "",
        move_number: int = 0,
        think_time_ms: int = 0,
        search_depth: int = 0,
        auto_log: bool = True,
    ):
        self.decision = AIDecisionLog(
            engine_type=engine_type,
            side=side,
            move_number=move_number,
            think_time_ms=think_time_ms,
            search_depth=search_depth,
        )
        self.auto_log = auto_log
        self._start_time: Optional[float] = None

    def __enter__(self) -> "AIDecisionContext":
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._start_time is not None:
            self.decision.time_ms = (time.perf_counter() - self._start_time) * 1000

        if exc_type is not None:
            self.decision.error = str(exc_val)

        if self.auto_log:
            log_level = logging.ERROR if self.decision.error else logging.INFO
            log_ai_decision(self.decision, log_level)

        return False

    def record_move(self, move: Any, score: float = 0.0, legal_moves: int = 0) -> None:
        self.decision.chosen_move = str(move) if move is not None else ""
        self.decision.move_score = float(score)
        self.decision.legal_moves = legal_moves

    def record_search_stats(
        self,
        iterations: int = 0,
        tree_size: int = 0,
        nodes_visited: int = 0,
    ) -> None:
        self.decision.iterations = iterations
        self.decision.tree_size = tree_size
        self.decision.nodes_visited = nodes_visited

    def record_fallback(self, reason: str) -> None:
        """Mark the decision as produced by the random fallback."""
        self.decision.used_fallback = True
        self.decision.fallback_reason = reason
