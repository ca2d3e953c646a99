"""Board construction, queries and validation helpers.

Boards travel as 9-tuples of 9-tuples of :class:`Cell`. The ASCII codec
uses one character per square::

    A  attacker      D  defender      K  king      .  empty

Rows are listed top (row 0) to bottom (row 8); whitespace inside a row is
ignored so boards can be written with spacing in tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .core.zobrist import get_zobrist
from .errors import InvalidStateError
from .models import BOARD_SIZE, Board, Cell, GameState, Side, Turn

_CHAR_TO_CELL = {
    "A": Cell.ATTACKER,
    "B": Cell.ATTACKER,
    "D": Cell.DEFENDER,
    "W": Cell.DEFENDER,
    "K": Cell.KING,
    ".": Cell.EMPTY,
    "O": Cell.EMPTY,
}
_CELL_TO_CHAR = {
    Cell.ATTACKER: "A",
    Cell.DEFENDER: "D",
    Cell.KING: "K",
    Cell.EMPTY: ".",
}

INITIAL_LAYOUT = (
    "...AAA...",
    "....A....",
    "....D....",
    "A...D...A",
    "AADDKDDAA",
    "A...D...A",
    "....D....",
    "....A....",
    "...AAA...",
)


class BoardManager:
    """Stateless helpers for building and inspecting boards."""

    @staticmethod
    def empty_board() -> Board:
        return tuple((Cell.EMPTY,) * BOARD_SIZE for _ in range(BOARD_SIZE))

    @staticmethod
    def parse_board(rows: str | Iterable[str]) -> Board:
        """Parse an ASCII board (a multi-line string or a list of rows)."""
        if isinstance(rows, str):
            rows = [line for line in rows.splitlines() if line.strip()]
        parsed = []
        for line in rows:
            chars = [ch for ch in line if not ch.isspace()]
            try:
                parsed.append(tuple(_CHAR_TO_CELL[ch.upper()] for ch in chars))
            except KeyError as e:
                raise ValueError(f"Unknown board character {e.args[0]!r}") from e
        if len(parsed) != BOARD_SIZE or any(len(r) != BOARD_SIZE for r in parsed):
            raise ValueError(
                f"Board must have {BOARD_SIZE} rows of {BOARD_SIZE} squares"
            )
        return tuple(parsed)

    @staticmethod
    def from_board(
        board: Board,
        turn: Turn = Turn.DEFENDER,
        move_count: int = 0,
    ) -> GameState:
        """Wrap a board snapshot into a state whose history starts here."""
        state = GameState(board=board, turn=turn, move_count=move_count)
        zobrist_hash = get_zobrist().compute_hash(state.board, state.turn)
        return state.model_copy(update={"position_history": (zobrist_hash,)})

    @classmethod
    def from_ascii(
        cls,
        rows: str | Iterable[str],
        turn: Turn = Turn.DEFENDER,
        move_count: int = 0,
    ) -> GameState:
        return cls.from_board(cls.parse_board(rows), turn, move_count)

    @classmethod
    def initial_state(cls) -> GameState:
        """Ashton Tablut start position; defenders move first."""
        return cls.from_ascii(INITIAL_LAYOUT, Turn.DEFENDER)

    @staticmethod
    def to_ascii(board: Board) -> str:
        return "\n".join(
            "".join(_CELL_TO_CHAR[cell] for cell in row) for row in board
        )

    @staticmethod
    def find_king(board: Board) -> tuple[int, int] | None:
        for r, row in enumerate(board):
            for c, cell in enumerate(row):
                if cell is Cell.KING:
                    return r, c
        return None

    @staticmethod
    def iter_pieces(board: Board, side: Side) -> Iterator[tuple[int, int]]:
        """Yield squares holding pieces moved by ``side`` in row-major order."""
        for r, row in enumerate(board):
            for c, cell in enumerate(row):
                if side.owns(cell):
                    yield r, c

    @staticmethod
    def count_pieces(board: Board) -> dict[Cell, int]:
        counts = {Cell.ATTACKER: 0, Cell.DEFENDER: 0, Cell.KING: 0}
        for row in board:
            for cell in row:
                if cell is not Cell.EMPTY:
                    counts[cell] += 1
        return counts

    @staticmethod
    def validate_state(state: GameState) -> None:
        """Fail fast on states that cannot come from a real game.

        Raises:
            InvalidStateError: A live game without exactly one King, more
                than one King in any state, or a position history that does
                not end with the current position.
        """
        kings = BoardManager.count_pieces(state.board)[Cell.KING]
        if kings > 1:
            raise InvalidStateError(
                "Board holds more than one King",
                context={"kings": kings},
            )
        if kings == 0 and not state.is_terminal:
            raise InvalidStateError(
                "Live game without a King on the board",
                context={"turn": state.turn.value},
            )
        if state.position_history and not state.is_terminal:
            expected = get_zobrist().compute_hash(state.board, state.turn)
            if state.position_history[-1] != expected:
                raise InvalidStateError(
                    "Position history does not end with the current position",
                    context={"move_count": state.move_count},
                )
