"""Heuristic weight profiles for the Tablut evaluator.

All scalar weights used by :class:`~tablut_ai.ai.evaluator.HeuristicEvaluator`
live here so the evaluator never carries literals. Keys mirror the evaluator
attribute names; applying a profile is a plain ``setattr`` per key.

Two groups of weights exist:

* **move shaping** (``WEIGHT_CAPTURE`` .. ``WEIGHT_TIE_BREAK_NOISE``) feed the
  fast per-move score used for move ordering and rollout policies;
* **position terms** (``WIN_SCORE`` .. ``WEIGHT_ENCIRCLEMENT``) feed the
  static evaluation used at minimax leaves.

Personas are small deltas over the balanced base profile.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

HeuristicWeights = dict[str, float]


BASE_V1_BALANCED_WEIGHTS: HeuristicWeights = {
    # Fast move score.
    "WEIGHT_CAPTURE": 2000.0,
    "WEIGHT_KING_CAPTURE": 20000.0,
    "WEIGHT_KING_ESCAPE": 50000.0,
    "WEIGHT_KING_EDGE_PROGRESS": 800.0,
    "WEIGHT_KING_SAFETY": 200.0,
    "WEIGHT_DEFENDER_SUPPORT": 80.0,
    "WEIGHT_DEFENDER_DRIFT": 20.0,
    "WEIGHT_ATTACKER_APPROACH": 300.0,
    "WEIGHT_ATTACKER_ALIGN": 60.0,
    "WEIGHT_ATTACKER_NOISE": 8.0,
    "WEIGHT_TIE_BREAK_NOISE": 20.0,
    # Static evaluation.
    "WIN_SCORE": 100000.0,
    "WEIGHT_DEFENDER_PIECE": 100.0,
    "WEIGHT_ATTACKER_PIECE": 120.0,
    "WEIGHT_ESCAPE_LANE": 150.0,
    "ESCAPE_LANE_CAP": 9.0,
    "WEIGHT_ENCIRCLEMENT": 90.0,
}

HEURISTIC_WEIGHT_KEYS: list[str] = list(BASE_V1_BALANCED_WEIGHTS)


def _with_deltas(
    base: Mapping[str, float],
    *,
    scale: Mapping[str, float] | None = None,
    offset: Mapping[str, float] | None = None,
) -> HeuristicWeights:
    """Create a new profile from *base* by applying per-key scale/offset."""
    scale = scale or {}
    offset = offset or {}
    return {
        key: value * scale.get(key, 1.0) + offset.get(key, 0.0)
        for key, value in base.items()
    }


HEURISTIC_V1_BALANCED = BASE_V1_BALANCED_WEIGHTS

# Attackers close in faster; defenders trade pawns more readily.
HEURISTIC_V1_AGGRESSIVE = _with_deltas(
    BASE_V1_BALANCED_WEIGHTS,
    scale={
        "WEIGHT_CAPTURE": 1.25,
        "WEIGHT_ATTACKER_APPROACH": 1.3,
        "WEIGHT_ENCIRCLEMENT": 1.2,
        "WEIGHT_DEFENDER_SUPPORT": 0.75,
    },
)

# Keeps the King screened and values every escape lane more.
HEURISTIC_V1_DEFENSIVE = _with_deltas(
    BASE_V1_BALANCED_WEIGHTS,
    scale={
        "WEIGHT_KING_SAFETY": 1.5,
        "WEIGHT_DEFENDER_SUPPORT": 1.25,
        "WEIGHT_ESCAPE_LANE": 1.2,
    },
)

# Deterministic ordering for tests: no random terms at all.
HEURISTIC_V1_DETERMINISTIC = _with_deltas(
    BASE_V1_BALANCED_WEIGHTS,
    scale={"WEIGHT_ATTACKER_NOISE": 0.0, "WEIGHT_TIE_BREAK_NOISE": 0.0},
)

DEFAULT_PROFILE_ID = "heuristic_v1_balanced"

HEURISTIC_WEIGHT_PROFILES: dict[str, HeuristicWeights] = {
    DEFAULT_PROFILE_ID: HEURISTIC_V1_BALANCED,
    "heuristic_v1_aggressive": HEURISTIC_V1_AGGRESSIVE,
    "heuristic_v1_defensive": HEURISTIC_V1_DEFENSIVE,
    "heuristic_v1_deterministic": HEURISTIC_V1_DETERMINISTIC,
}

DEFAULT_WEIGHTS = HEURISTIC_V1_BALANCED

TRAINED_PROFILES_ENV = "TABLUT_AI_HEURISTIC_PROFILES"

# Set once the file named by TRAINED_PROFILES_ENV has been merged.
_env_profiles_loaded = False


def get_weights(profile_id: str | None) -> HeuristicWeights:
    """Return the weights for ``profile_id`` (balanced profile when None).

    The first named lookup merges the profiles file named by
    ``TABLUT_AI_HEURISTIC_PROFILES``, if any. Unknown ids fall back to the
    balanced profile with a warning.
    """
    if profile_id is None:
        return DEFAULT_WEIGHTS
    _load_env_profiles_once()
    weights = HEURISTIC_WEIGHT_PROFILES.get(profile_id)
    if weights is None:
        logger.warning(
            "Unknown heuristic profile %r, using %s", profile_id, DEFAULT_PROFILE_ID
        )
        return DEFAULT_WEIGHTS
    return weights


def _load_env_profiles_once() -> None:
    global _env_profiles_loaded
    if _env_profiles_loaded:
        return
    _env_profiles_loaded = True
    load_profiles_if_available()


def load_profiles_if_available(path: str | None = None) -> dict[str, HeuristicWeights]:
    """Merge tuned profiles from a JSON file into the registry.

    The file maps profile ids to (possibly partial) weight dicts; missing
    keys are filled from the balanced profile and unknown keys are ignored.
    When ``path`` is omitted the ``TABLUT_AI_HEURISTIC_PROFILES`` environment
    variable is consulted.

    Returns:
        Mapping of the profile ids registered by this call.

    Raises:
        ConfigurationError: The file is not a JSON object of weight dicts.
    """
    if path is None:
        path = os.getenv(TRAINED_PROFILES_ENV)
    if not path or not os.path.exists(path):
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
        loaded: dict[str, HeuristicWeights] = {}
        for profile_id, raw in payload.items():
            weights = dict(BASE_V1_BALANCED_WEIGHTS)
            for key, value in raw.items():
                if key in weights:
                    weights[key] = float(value)
                else:
                    logger.debug("Ignoring unknown weight %s in %s", key, profile_id)
            loaded[profile_id] = weights
    except (ValueError, TypeError, AttributeError) as e:
        raise ConfigurationError(
            f"Invalid heuristic profiles file: {e}",
            context={"path": path},
        ) from e

    HEURISTIC_WEIGHT_PROFILES.update(loaded)
    logger.info("Loaded %d heuristic profile(s) from %s", len(loaded), path)
    return loaded
