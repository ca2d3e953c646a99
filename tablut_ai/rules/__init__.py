"""Ashton Tablut rules: geometry, captures, move generation and application."""

from .captures import CaptureResult, resolve_captures
from .default_engine import DefaultRulesEngine
from .factory import get_rules_engine
from .interfaces import RulesEngine

__all__ = [
    "CaptureResult",
    "DefaultRulesEngine",
    "RulesEngine",
    "get_rules_engine",
    "resolve_captures",
]
