from __future__ import annotations

from functools import lru_cache

from ..models import RulesConfig
from .default_engine import DefaultRulesEngine
from .interfaces import RulesEngine


@lru_cache(maxsize=1)
def _default_engine() -> DefaultRulesEngine:
    return DefaultRulesEngine()


def get_rules_engine(config: RulesConfig | None = None) -> RulesEngine:
    """Return the rules engine for ``config``.

    The default configuration shares one engine instance process-wide.
    """
    if config is None or config == RulesConfig():
        return _default_engine()
    return DefaultRulesEngine(config)
