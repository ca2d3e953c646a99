"""
Pydantic Models for Tablut Game State
Mirrors the board snapshot exchanged with the arbiter (board, turn) plus the
search configuration accepted by the decision core.
"""

import os
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

BOARD_SIZE = 9


class Cell(str, Enum):
    """Cell occupancy enumeration"""
    EMPTY = "empty"
    ATTACKER = "attacker"
    DEFENDER = "defender"
    KING = "king"


class Side(str, Enum):
    """Playing side enumeration"""
    ATTACKER = "attacker"
    DEFENDER = "defender"

    @property
    def opponent(self) -> "Side":
        return Side.DEFENDER if self is Side.ATTACKER else Side.ATTACKER

    def owns(self, cell: Cell) -> bool:
        """True when ``cell`` holds a piece moved by this side."""
        if self is Side.ATTACKER:
            return cell is Cell.ATTACKER
        return cell is Cell.DEFENDER or cell is Cell.KING


class Turn(str, Enum):
    """Turn / game status enumeration"""
    ATTACKER = "attacker"
    DEFENDER = "defender"
    DEFENDER_WIN = "defender_win"
    ATTACKER_WIN = "attacker_win"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_TURNS

    @property
    def side(self) -> Optional[Side]:
        """Side to move, or None once the game is decided."""
        if self is Turn.ATTACKER:
            return Side.ATTACKER
        if self is Turn.DEFENDER:
            return Side.DEFENDER
        return None

    @classmethod
    def for_side(cls, side: Side) -> "Turn":
        return cls.ATTACKER if side is Side.ATTACKER else cls.DEFENDER

    @classmethod
    def win_for(cls, side: Side) -> "Turn":
        return cls.ATTACKER_WIN if side is Side.ATTACKER else cls.DEFENDER_WIN


_TERMINAL_TURNS = frozenset({Turn.DEFENDER_WIN, Turn.ATTACKER_WIN, Turn.DRAW})


class AIType(str, Enum):
    """AI type enumeration"""
    RANDOM = "random"
    HEURISTIC = "heuristic"
    MINIMAX = "minimax"
    MCTS = "mcts"


class Position(BaseModel):
    """Board coordinate (row, col), both in [0, 8]"""
    row: int = Field(ge=0, lt=BOARD_SIZE)
    col: int = Field(ge=0, lt=BOARD_SIZE)

    class Config:
        frozen = True

    def to_key(self) -> str:
        """Convert position to the arbiter's box name (e.g. ``e5``)."""
        return f"{chr(ord('a') + self.col)}{self.row + 1}"

    @classmethod
    def from_key(cls, key: str) -> "Position":
        """Parse a box name such as ``e5`` into a position."""
        key = key.strip().lower()
        if len(key) < 2 or not key[1:].isdigit():
            raise ValueError(f"Malformed box name: {key!r}")
        return cls(row=int(key[1:]) - 1, col=ord(key[0]) - ord('a'))

    def __str__(self) -> str:
        return self.to_key()


class Move(BaseModel):
    """Move representation.

    A move slides the piece on ``from_pos`` to ``to`` for ``player``. It is
    only meaningful relative to the state it was generated from.
    """

    from_pos: Position
    to: Position
    player: Side

    class Config:
        frozen = True

    def __str__(self) -> str:
        prefix = "A" if self.player is Side.ATTACKER else "D"
        return f"{prefix} {self.from_pos.to_key()}-{self.to.to_key()}"


Board = Tuple[Tuple[Cell, ...], ...]


class GameState(BaseModel):
    """Complete game state.

    ``position_history`` holds the Zobrist hash of every position reached
    so far (the current one last) and drives repetition draws.
    """
    board: Board
    turn: Turn
    move_count: int = Field(0, ge=0)
    position_history: Tuple[int, ...] = ()

    class Config:
        frozen = True

    @field_validator("board")
    @classmethod
    def _check_board_shape(cls, board: Board) -> Board:
        if len(board) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in board):
            raise ValueError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}")
        return board

    def cell(self, pos: Position) -> Cell:
        return self.board[pos.row][pos.col]

    @property
    def side_to_move(self) -> Optional[Side]:
        return self.turn.side

    @property
    def is_terminal(self) -> bool:
        return self.turn.is_terminal

    @property
    def zobrist_hash(self) -> int:
        """Hash of the current position (last history entry when tracked)."""
        if self.position_history:
            return self.position_history[-1]
        from .core.zobrist import get_zobrist
        return get_zobrist().compute_hash(self.board, self.turn)


class RulesConfig(BaseModel):
    """Draw-tracking parameters of the rules engine"""
    # Number of occurrences of the same position that ends the game in a draw.
    repetition_limit: int = Field(2, ge=2)
    # Ply cap producing a draw; None disables it.
    max_moves: Optional[int] = Field(None, ge=1)

    class Config:
        frozen = True


class AIConfig(BaseModel):
    """AI configuration"""
    ai_type: AIType = AIType.MCTS
    # MCTS wall-clock budget per move; 0 runs no search cycle at all.
    think_time_ms: int = Field(1000, ge=0)
    max_iterations: Optional[int] = Field(None, ge=0)
    search_depth: int = Field(2, ge=0)
    exploration_constant: float = Field(1.4, ge=0)
    rollout_max_moves: int = Field(150, ge=0)
    rollout_epsilon: float = Field(0.10, ge=0, le=1)
    rollout_top_k: int = Field(5, ge=1, le=5)
    use_pruning: bool = True
    heuristic_profile_id: Optional[str] = None
    rng_seed: Optional[int] = None

    class Config:
        frozen = True

    @classmethod
    def from_env(cls, prefix: str = "TABLUT_AI_", **overrides) -> "AIConfig":
        """Build a config from ``TABLUT_AI_*`` environment variables.

        Recognised variables: ``TYPE``, ``THINK_TIME_MS``, ``SEARCH_DEPTH``,
        ``EXPLORATION_CONSTANT`` and ``RNG_SEED`` (each prefixed). Explicit
        keyword overrides win over the environment.
        """
        env_fields = {
            "TYPE": "ai_type",
            "THINK_TIME_MS": "think_time_ms",
            "SEARCH_DEPTH": "search_depth",
            "EXPLORATION_CONSTANT": "exploration_constant",
            "RNG_SEED": "rng_seed",
        }
        values = {}
        for suffix, field_name in env_fields.items():
            raw = os.environ.get(prefix + suffix, "").strip()
            if raw:
                values[field_name] = raw.lower() if field_name == "ai_type" else raw
        values.update(overrides)
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid AI configuration from environment",
                context={"prefix": prefix, "errors": e.error_count()},
            ) from e
