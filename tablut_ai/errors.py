"""
Tablut AI Error Hierarchy

Unified exception hierarchy for the decision core. All custom exceptions
inherit from TablutError for easy catching and filtering.

Usage:
    from tablut_ai.errors import RulesViolationError, InvalidStateError

    try:
        engine.apply_move(state, move)
    except RulesViolationError as e:
        logger.warning(f"Invalid move: {e.message}, rule: {e.rule_ref}")
"""

from typing import Any

__all__ = [
    "ConfigurationError",
    "InvalidStateError",
    # Game rules errors
    "RulesViolationError",
    # Base error
    "TablutError",
]


class TablutError(Exception):
    """Base exception for all decision-core errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "TABLUT_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(TablutError):
    """Illegal move per the game rules.

    Raised by a rules engine when asked to apply a move that the rules do
    not allow. Search code treats it as "this move does not happen".

    Attributes:
        rule_ref: Short identifier of the violated rule (e.g. "blocked")
    """
    code: str = "RULES_VIOLATION"

    def __init__(
        self,
        message: str,
        rule_ref: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.rule_ref = rule_ref
        if rule_ref:
            self.context["rule_ref"] = rule_ref


class InvalidStateError(TablutError):
    """Corrupted or unexpected game state.

    Raised when a caller hands in a state that cannot occur in a real game
    (missing King, two Kings, asked to move out of turn). This signals that
    the caller is out of sync with the authoritative game and must not be
    silently tolerated.
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TablutError):
    """Invalid or unsupported configuration value."""
    code: str = "CONFIGURATION_ERROR"
