"""Rules engine protocol consumed by the AI players."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import GameState, Move


@runtime_checkable
class RulesEngine(Protocol):
    """Move generation and the authoritative move oracle.

    ``apply_move`` must raise :class:`~tablut_ai.errors.RulesViolationError`
    for any move it refuses; search code treats that as "skip this move"
    and never as a fatal error.
    """

    def get_valid_moves(self, state: GameState) -> list[Move]:
        ...

    def apply_move(self, state: GameState, move: Move) -> GameState:
        ...
