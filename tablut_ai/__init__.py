"""Decision core of an Ashton Tablut playing agent."""

from .board_manager import BoardManager
from .errors import ConfigurationError, InvalidStateError, RulesViolationError, TablutError
from .models import AIConfig, AIType, Cell, GameState, Move, Position, RulesConfig, Side, Turn

__version__ = "0.1.0"

__all__ = [
    "AIConfig",
    "AIType",
    "BoardManager",
    "Cell",
    "ConfigurationError",
    "GameState",
    "InvalidStateError",
    "Move",
    "Position",
    "RulesConfig",
    "RulesViolationError",
    "Side",
    "TablutError",
    "Turn",
]
