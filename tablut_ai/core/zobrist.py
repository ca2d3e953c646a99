"""Zobrist hashing for Tablut positions.

A position hash covers the board occupancy and the side to move. Hashes
are updated incrementally by the rules engine and recorded in
``GameState.position_history`` to detect repeated positions.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np

from ..models import BOARD_SIZE, Board, Cell, Turn

_PIECES = (Cell.ATTACKER, Cell.DEFENDER, Cell.KING)
_PIECE_INDEX = {cell: i for i, cell in enumerate(_PIECES)}


class ZobristHash:
    """Random 63-bit keys per (square, piece) and per turn value."""

    def __init__(self, seed: int = 0x7AB1) -> None:
        rng = np.random.default_rng(seed)
        table = rng.integers(
            1, 2**63 - 1,
            size=(BOARD_SIZE, BOARD_SIZE, len(_PIECES)),
            dtype=np.int64,
        )
        # Plain ints: XOR on Python ints is much faster than on numpy scalars
        # in the per-move update path.
        self._piece_keys: list[list[list[int]]] = table.tolist()
        turn_keys = rng.integers(1, 2**63 - 1, size=len(Turn), dtype=np.int64)
        self._turn_keys: dict[Turn, int] = {
            turn: int(key) for turn, key in zip(Turn, turn_keys)
        }

    def piece_key(self, r: int, c: int, cell: Cell) -> int:
        if cell is Cell.EMPTY:
            return 0
        return self._piece_keys[r][c][_PIECE_INDEX[cell]]

    def turn_key(self, turn: Turn) -> int:
        return self._turn_keys[turn]

    def compute_hash(self, board: Board, turn: Turn) -> int:
        h = self._turn_keys[turn]
        for r, row in enumerate(board):
            for c, cell in enumerate(row):
                if cell is not Cell.EMPTY:
                    h ^= self._piece_keys[r][c][_PIECE_INDEX[cell]]
        return h


@lru_cache(maxsize=1)
def get_zobrist() -> ZobristHash:
    """Shared hasher; keys must be identical across every state of a game."""
    return ZobristHash()
