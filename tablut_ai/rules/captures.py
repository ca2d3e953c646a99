"""Canonical capture resolution.

Used both when the rules engine commits a move and when the evaluator
scores a candidate move, so that the two can never disagree about which
pieces a move removes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..models import Cell, Side
from .geometry import DIRECTIONS, in_bounds, is_hostile_square

BoardLike = Sequence[Sequence[Cell]]


@dataclass(frozen=True)
class CaptureResult:
    """Pieces removed by a single move."""
    captured: tuple[tuple[int, int], ...] = ()
    king_captured: bool = False
    king_square: tuple[int, int] | None = None

    @property
    def pawn_count(self) -> int:
        return len(self.captured)

    def __bool__(self) -> bool:
        return bool(self.captured) or self.king_captured


NO_CAPTURE = CaptureResult()


def _is_allied_anvil(cell: Cell, side: Side) -> bool:
    if side is Side.ATTACKER:
        return cell is Cell.ATTACKER
    return cell is Cell.DEFENDER or cell is Cell.KING


def is_king_enclosed(board: BoardLike, kr: int, kc: int) -> bool:
    """True when all four sides of the King are attacker, hostile or edge."""
    for dr, dc in DIRECTIONS:
        r, c = kr + dr, kc + dc
        if not in_bounds(r, c):
            continue
        if board[r][c] is Cell.ATTACKER or is_hostile_square(r, c):
            continue
        return False
    return True


def resolve_captures(board: BoardLike, r: int, c: int, side: Side) -> CaptureResult:
    """Compute the captures caused by ``side`` landing a piece on (r, c).

    ``board`` must already show the moved piece on its landing square. The
    board is not modified.
    """
    enemy_pawn = Cell.DEFENDER if side is Side.ATTACKER else Cell.ATTACKER
    captured: list[tuple[int, int]] = []
    king_captured = False
    king_square = None

    for dr, dc in DIRECTIONS:
        nr, nc = r + dr, c + dc
        if not in_bounds(nr, nc):
            continue
        victim = board[nr][nc]

        if victim is Cell.KING:
            if side is Side.ATTACKER and is_king_enclosed(board, nr, nc):
                king_captured = True
                king_square = (nr, nc)
            continue

        if victim is not enemy_pawn:
            continue

        br, bc = nr + dr, nc + dc
        if not in_bounds(br, bc):
            continue
        if _is_allied_anvil(board[br][bc], side) or is_hostile_square(br, bc):
            captured.append((nr, nc))

    if not captured and not king_captured:
        return NO_CAPTURE
    return CaptureResult(
        captured=tuple(captured),
        king_captured=king_captured,
        king_square=king_square,
    )
