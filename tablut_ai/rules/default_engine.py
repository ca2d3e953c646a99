"""In-memory Ashton Tablut rules engine.

Generation and application share the same square predicates and the same
capture resolution, so every move produced by :meth:`get_valid_moves` is
accepted by :meth:`apply_move` on the same state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from ..errors import RulesViolationError
from ..models import Board, Cell, GameState, Move, RulesConfig, Side, Turn
from ..core.zobrist import get_zobrist
from .captures import resolve_captures
from .geometry import CITADELS, DIRECTIONS, POSITIONS, THRONE, in_bounds, is_escape_square

logger = logging.getLogger(__name__)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class DefaultRulesEngine:
    """Canonical rules engine implementing the :class:`RulesEngine` protocol."""

    def __init__(self, config: RulesConfig | None = None):
        self.config = config or RulesConfig()
        self._zobrist = get_zobrist()

    # ------------------------------------------------------------------
    # Move generation
    # ------------------------------------------------------------------

    def _iter_moves(self, board: Board, side: Side) -> Iterator[Move]:
        """Yield moves in row-major source order, Up/Down/Left/Right, nearest first."""
        for r in range(len(board)):
            row = board[r]
            for c in range(len(row)):
                piece = row[c]
                if not side.owns(piece):
                    continue
                is_king = piece is Cell.KING
                source = POSITIONS[r][c]
                for dr, dc in DIRECTIONS:
                    nr, nc = r + dr, c + dc
                    while in_bounds(nr, nc):
                        if board[nr][nc] is not Cell.EMPTY or (nr, nc) in CITADELS:
                            break
                        # Pawns may cross an empty throne but never stop on it.
                        if is_king or (nr, nc) != THRONE:
                            yield Move.model_construct(
                                from_pos=source,
                                to=POSITIONS[nr][nc],
                                player=side,
                            )
                        nr += dr
                        nc += dc

    def get_valid_moves(self, state: GameState) -> list[Move]:
        """All legal moves for the side to move; empty for finished games."""
        side = state.turn.side
        if side is None:
            return []
        return list(self._iter_moves(state.board, side))

    def has_valid_move(self, board: Board, side: Side) -> bool:
        return next(self._iter_moves(board, side), None) is not None

    # ------------------------------------------------------------------
    # Move application
    # ------------------------------------------------------------------

    def validate_move(self, state: GameState, move: Move) -> None:
        """Raise :class:`RulesViolationError` unless ``move`` is legal in ``state``."""
        side = state.turn.side
        if side is None:
            raise RulesViolationError(
                "Game is already over",
                rule_ref="game-over",
                context={"turn": state.turn.value},
            )
        if move.player is not side:
            raise RulesViolationError(
                "Move made out of turn",
                rule_ref="turn-order",
                context={"move": str(move), "turn": state.turn.value},
            )

        fr, fc = move.from_pos.row, move.from_pos.col
        tr, tc = move.to.row, move.to.col
        piece = state.board[fr][fc]
        if not side.owns(piece):
            raise RulesViolationError(
                "Source square does not hold a piece of the mover",
                rule_ref="own-piece",
                context={"move": str(move), "source": piece.value},
            )
        if (fr, fc) == (tr, tc) or (fr != tr and fc != tc):
            raise RulesViolationError(
                "Pieces move in a straight orthogonal line",
                rule_ref="orthogonal",
                context={"move": str(move)},
            )

        dr, dc = _sign(tr - fr), _sign(tc - fc)
        r, c = fr + dr, fc + dc
        while True:
            if state.board[r][c] is not Cell.EMPTY:
                raise RulesViolationError(
                    "Path or destination is occupied",
                    rule_ref="blocked",
                    context={"move": str(move), "square": POSITIONS[r][c].to_key()},
                )
            if (r, c) in CITADELS:
                raise RulesViolationError(
                    "Pieces may not enter or cross a citadel",
                    rule_ref="citadel",
                    context={"move": str(move), "square": POSITIONS[r][c].to_key()},
                )
            if (r, c) == (tr, tc):
                break
            r += dr
            c += dc

        if (tr, tc) == THRONE and piece is not Cell.KING:
            raise RulesViolationError(
                "Only the King may stop on the throne",
                rule_ref="throne",
                context={"move": str(move)},
            )

    def apply_move(self, state: GameState, move: Move) -> GameState:
        """Validate and apply ``move``, returning the successor state.

        Args:
            state: Position the move was generated from.
            move: Move to play.

        Returns:
            A new :class:`GameState` with captures removed, ``move_count``
            incremented, the new position appended to the history and the
            turn (or game result) derived.

        Raises:
            RulesViolationError: The move is illegal in ``state``.
        """
        self.validate_move(state, move)
        side = move.player
        fr, fc = move.from_pos.row, move.from_pos.col
        tr, tc = move.to.row, move.to.col
        piece = state.board[fr][fc]
        zobrist = self._zobrist

        grid = [list(row) for row in state.board]
        grid[fr][fc] = Cell.EMPTY
        grid[tr][tc] = piece
        captures = resolve_captures(grid, tr, tc, side)

        next_turn = Turn.for_side(side.opponent)
        h = state.zobrist_hash
        h ^= zobrist.turn_key(state.turn) ^ zobrist.turn_key(next_turn)
        h ^= zobrist.piece_key(fr, fc, piece) ^ zobrist.piece_key(tr, tc, piece)
        for r, c in captures.captured:
            h ^= zobrist.piece_key(r, c, grid[r][c])
            grid[r][c] = Cell.EMPTY
        if captures.king_captured:
            kr, kc = captures.king_square
            h ^= zobrist.piece_key(kr, kc, Cell.KING)
            grid[kr][kc] = Cell.EMPTY

        board = tuple(tuple(row) for row in grid)
        move_count = state.move_count + 1
        history = state.position_history or (state.zobrist_hash,)

        if captures.king_captured:
            turn = Turn.ATTACKER_WIN
        elif piece is Cell.KING and is_escape_square(tr, tc):
            turn = Turn.DEFENDER_WIN
        elif history.count(h) + 1 >= self.config.repetition_limit:
            logger.debug("Draw by repetition after %d plies", move_count)
            turn = Turn.DRAW
        elif self.config.max_moves is not None and move_count >= self.config.max_moves:
            turn = Turn.DRAW
        elif not self.has_valid_move(board, side.opponent):
            logger.debug("Draw: %s has no legal move", side.opponent.value)
            turn = Turn.DRAW
        else:
            turn = next_turn

        return GameState.model_construct(
            board=board,
            turn=turn,
            move_count=move_count,
            position_history=history + (h,),
        )
