"""AI factory for Tablut.

All strategies are created through :class:`AIFactory` so every agent gets
the same rules engine wiring and configuration handling.

Usage:
    from tablut_ai.ai.factory import AIFactory, create_ai

    ai = AIFactory.create(AIType.MCTS, Side.DEFENDER, AIConfig(think_time_ms=900))

    # Type taken from the config
    ai = create_ai(Side.ATTACKER, AIConfig.from_env())

    # Custom strategy
    AIFactory.register("greedy_v2", GreedyV2AI)
    ai = AIFactory.create("greedy_v2", Side.DEFENDER)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, Union

from ..errors import ConfigurationError
from ..models import AIConfig, AIType, Side
from ..rules.interfaces import RulesEngine

if TYPE_CHECKING:
    from .base import BaseAI

logger = logging.getLogger(__name__)


class AIFactory:
    """Centralized factory for creating AI instances.

    Built-in types are imported lazily; custom implementations can be
    registered at runtime under a string identifier. A constructor is called
    as ``constructor(side, config, rules_engine)``.
    """

    _custom_registry: dict[str, Callable[..., BaseAI]] = {}
    _class_cache: dict[AIType, type[BaseAI]] = {}

    @classmethod
    def register(cls, identifier: str, constructor: Callable[..., BaseAI]) -> None:
        """Register a custom AI implementation under ``identifier``."""
        if identifier in cls._custom_registry:
            logger.warning("Overwriting existing custom AI: %s", identifier)
        cls._custom_registry[identifier] = constructor
        logger.debug("Registered custom AI: %s", identifier)

    @classmethod
    def unregister(cls, identifier: str) -> bool:
        """Remove a custom AI; returns False when it was not registered."""
        if identifier in cls._custom_registry:
            del cls._custom_registry[identifier]
            logger.debug("Unregistered custom AI: %s", identifier)
            return True
        return False

    @classmethod
    def list_registered(cls) -> dict[str, str]:
        result = {ai_type.value: f"Built-in: {ai_type.name}" for ai_type in AIType}
        for identifier, constructor in cls._custom_registry.items():
            doc = getattr(constructor, "__doc__", None) or "Custom AI"
            result[identifier] = f"Custom: {doc.strip().splitlines()[0]}"
        return result

    @classmethod
    def _get_ai_class(cls, ai_type: AIType) -> type[BaseAI]:
        if ai_type in cls._class_cache:
            return cls._class_cache[ai_type]

        # Lazy imports to avoid circular dependencies
        if ai_type == AIType.RANDOM:
            from .random_ai import RandomAI
            ai_class = RandomAI
        elif ai_type == AIType.HEURISTIC:
            from .heuristic_ai import HeuristicAI
            ai_class = HeuristicAI
        elif ai_type == AIType.MINIMAX:
            from .minimax_ai import MinimaxAI
            ai_class = MinimaxAI
        elif ai_type == AIType.MCTS:
            from .mcts_ai import MCTSAI
            ai_class = MCTSAI
        else:
            raise ConfigurationError(
                f"Unsupported AI type: {ai_type}",
                context={"ai_type": str(ai_type)},
            )

        cls._class_cache[ai_type] = ai_class
        return ai_class

    @classmethod
    def create(
        cls,
        ai_type: Union[AIType, str],
        side: Side,
        config: Optional[AIConfig] = None,
        rules_engine: Optional[RulesEngine] = None,
    ) -> BaseAI:
        """Create an AI instance.

        Args:
            ai_type: Built-in :class:`AIType` (or its value) or the identifier
                of a registered custom AI.
            side: Side the AI plays.
            config: AI configuration; defaults to ``AIConfig(ai_type=...)``
                for built-in types.
            rules_engine: Optional injected move oracle.

        Raises:
            ConfigurationError: ``ai_type`` names no built-in or registered AI.
        """
        if isinstance(ai_type, str) and ai_type in cls._custom_registry:
            constructor = cls._custom_registry[ai_type]
            return constructor(side, config or AIConfig(), rules_engine)

        try:
            resolved = AIType(ai_type)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown AI type: {ai_type!r}",
                context={"available": sorted(cls.list_registered())},
            ) from e

        if config is None:
            config = AIConfig(ai_type=resolved)
        ai_class = cls._get_ai_class(resolved)
        return ai_class(side, config, rules_engine)


def create_ai(
    side: Side,
    config: Optional[AIConfig] = None,
    rules_engine: Optional[RulesEngine] = None,
) -> BaseAI:
    """Create the AI selected by ``config.ai_type``."""
    config = config or AIConfig()
    return AIFactory.create(config.ai_type, side, config, rules_engine)
