"""Heuristic evaluation for Tablut.

:class:`HeuristicEvaluator` provides two scores, both from the evaluator's
own side's perspective:

* a **fast move score** (:meth:`HeuristicEvaluator.score_move`) used to
  order moves in search and to bias rollouts. It is linear in the board
  size and never mutates the state;
* a **static position score** (:meth:`HeuristicEvaluator.evaluate`) used at
  search cutoffs.

Captures are resolved with the same function the rules engine uses to
commit moves, so the capture bonus always matches what the move removes.

Usage:
    evaluator = HeuristicEvaluator(Side.DEFENDER, rng=random.Random(7))
    scores = evaluator.score_moves(state, moves)
    value = evaluator.evaluate(state)
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence

from ..board_manager import BoardManager
from ..models import BOARD_SIZE, Board, Cell, GameState, Move, Side, Turn
from ..rules.captures import resolve_captures
from ..rules.geometry import (
    DIRECTIONS,
    edge_distance,
    in_bounds,
    is_escape_square,
    is_hostile_square,
    manhattan,
)
from .heuristic_weights import DEFAULT_WEIGHTS, HEURISTIC_WEIGHT_KEYS

# Larger than any on-board Manhattan distance.
_FAR = 2 * BOARD_SIZE


def _board_after_slide(
    board: Board, fr: int, fc: int, tr: int, tc: int, piece: Cell
) -> list:
    """Shallow view of ``board`` with ``piece`` moved; only touched rows copied."""
    grid = list(board)
    row = list(grid[fr])
    row[fc] = Cell.EMPTY
    grid[fr] = row
    row = list(grid[tr])
    row[tc] = piece
    grid[tr] = row
    return grid


def _nearest_distance(r: int, c: int, squares: Sequence[tuple[int, int]]) -> int:
    return min((manhattan(r, c, sr, sc) for sr, sc in squares), default=_FAR)


def count_escape_lanes(board: Board, kr: int, kc: int) -> int:
    """Number of King rays that reach the board edge without meeting a piece."""
    lanes = 0
    for dr, dc in DIRECTIONS:
        r, c = kr + dr, kc + dc
        if not in_bounds(r, c):
            continue
        while in_bounds(r, c) and board[r][c] is Cell.EMPTY:
            r += dr
            c += dc
        if not in_bounds(r, c):
            lanes += 1
    return lanes


def count_enclosed_sides(board: Board, kr: int, kc: int) -> int:
    """King sides held by an attacker, a hostile square or the board edge."""
    enclosed = 0
    for dr, dc in DIRECTIONS:
        r, c = kr + dr, kc + dc
        if not in_bounds(r, c) or board[r][c] is Cell.ATTACKER or is_hostile_square(r, c):
            enclosed += 1
    return enclosed


class HeuristicEvaluator:
    """Fast move scores and static evaluation for one side.

    Args:
        side: Side whose perspective every score is expressed in.
        weights: Weight profile (see :mod:`.heuristic_weights`); missing keys
            keep their balanced defaults.
        rng: Random source for the bounded noise terms. Pass the owning AI's
            RNG so scores are reproducible under a fixed seed.
    """

    def __init__(
        self,
        side: Side,
        weights: Mapping[str, float] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.side = side
        self.rng = rng if rng is not None else random.Random()
        self.apply_weights(DEFAULT_WEIGHTS)
        if weights:
            self.apply_weights(weights)

    def apply_weights(self, weights: Mapping[str, float]) -> None:
        for key in HEURISTIC_WEIGHT_KEYS:
            if key in weights:
                setattr(self, key, weights[key])

    # ------------------------------------------------------------------
    # Fast move score
    # ------------------------------------------------------------------

    def score_move(self, state: GameState, move: Move) -> int:
        return self.score_moves(state, [move])[0]

    def score_moves(self, state: GameState, moves: Sequence[Move]) -> list[int]:
        """Score a batch of moves generated from ``state``.

        The King square and attacker squares are looked up once per batch.
        """
        board = state.board
        king = BoardManager.find_king(board)
        attackers = list(BoardManager.iter_pieces(board, Side.ATTACKER))
        return [self._score(board, move, king, attackers) for move in moves]

    def _score(
        self,
        board: Board,
        move: Move,
        king: tuple[int, int] | None,
        attackers: list[tuple[int, int]],
    ) -> int:
        fr, fc = move.from_pos.row, move.from_pos.col
        tr, tc = move.to.row, move.to.col
        piece = board[fr][fc]

        grid = _board_after_slide(board, fr, fc, tr, tc, piece)
        captures = resolve_captures(grid, tr, tc, move.player)
        score = self.WEIGHT_CAPTURE * captures.pawn_count
        if captures.king_captured:
            score += self.WEIGHT_KING_CAPTURE

        if piece is Cell.KING:
            if is_escape_square(tr, tc):
                score += self.WEIGHT_KING_ESCAPE
            if edge_distance(tr, tc) < edge_distance(fr, fc):
                score += self.WEIGHT_KING_EDGE_PROGRESS
            remaining = attackers
            if captures.captured:
                removed = set(captures.captured)
                remaining = [sq for sq in attackers if sq not in removed]
            if _nearest_distance(tr, tc, remaining) > _nearest_distance(fr, fc, attackers):
                score += self.WEIGHT_KING_SAFETY
        elif king is not None:
            kr, kc = king
            closer = manhattan(tr, tc, kr, kc) < manhattan(fr, fc, kr, kc)
            if piece is Cell.DEFENDER:
                score += self.WEIGHT_DEFENDER_SUPPORT if closer else -self.WEIGHT_DEFENDER_DRIFT
            else:
                if closer:
                    score += self.WEIGHT_ATTACKER_APPROACH
                if tr == kr or tc == kc:
                    score += self.WEIGHT_ATTACKER_ALIGN

        if piece is Cell.ATTACKER and self.WEIGHT_ATTACKER_NOISE >= 1:
            score += self.rng.randrange(int(self.WEIGHT_ATTACKER_NOISE))
        if self.WEIGHT_TIE_BREAK_NOISE >= 1:
            score += self.rng.randrange(int(self.WEIGHT_TIE_BREAK_NOISE))
        return int(score)

    # ------------------------------------------------------------------
    # Static evaluation
    # ------------------------------------------------------------------

    def evaluate(self, state: GameState) -> int:
        """Static score of ``state``; positive favours ``self.side``."""
        if state.is_terminal:
            return self._terminal_score(state.turn)
        return self.breakdown(state)["total"]

    def _terminal_score(self, turn: Turn) -> int:
        if turn is Turn.DRAW:
            return 0
        if turn is Turn.win_for(self.side):
            return int(self.WIN_SCORE)
        return -int(self.WIN_SCORE)

    def breakdown(self, state: GameState) -> dict[str, int]:
        """Return every evaluation component plus the ``total``, all integers."""
        board = state.board
        counts = BoardManager.count_pieces(board)
        material = (
            self.WEIGHT_DEFENDER_PIECE * counts[Cell.DEFENDER]
            - self.WEIGHT_ATTACKER_PIECE * counts[Cell.ATTACKER]
        )
        if self.side is Side.ATTACKER:
            material = -material

        king = BoardManager.find_king(board)
        lanes = count_escape_lanes(board, *king) if king else 0
        enclosed = count_enclosed_sides(board, *king) if king else 0

        king_escape = 0
        encirclement = 0
        if self.side is Side.DEFENDER:
            king_escape = self.WEIGHT_ESCAPE_LANE * min(lanes * lanes, self.ESCAPE_LANE_CAP)
        else:
            encirclement = self.WEIGHT_ENCIRCLEMENT * enclosed * enclosed

        total = material + king_escape + encirclement
        if state.is_terminal:
            total = self._terminal_score(state.turn)

        return {
            "material": int(material),
            "escape_lanes": lanes,
            "king_escape": int(king_escape),
            "encircled_sides": enclosed,
            "encirclement": int(encirclement),
            "total": int(total),
        }

