from __future__ import annotations

import math

from skillsense.core.config.scoring import get_scoring_value
from skillsense.schemas.skills import PROFICIENCY_LEVELS


def proficiency_order() -> tuple[str, ...]:
    configured = get_scoring_value("matching.proficiency_order", None)
    if isinstance(configured, list) and set(configured) == set(PROFICIENCY_LEVELS):
        return tuple(configured)
    return PROFICIENCY_LEVELS


def ordinal(level: str | None) -> int:
    """Position of a level in beginner < intermediate < advanced < expert.

    A missing level counts as the configured default user level.
    """
    order = proficiency_order()
    resolved = level or get_scoring_value("matching.default_user_level", "beginner")
    if resolved not in order:
        raise ValueError(f"Unknown proficiency level '{level}'")
    return order.index(resolved)


def meets_level(user_level: str | None, required_level: str) -> bool:
    return ordinal(user_level) >= ordinal(required_level)


def highest_level(levels: list[str]) -> str:
    return max(levels, key=ordinal)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def level_from_confidence(confidence: float, *, advanced: float = 0.7, intermediate: float = 0.4) -> str:
    if confidence > advanced:
        return "advanced"
    if confidence > intermediate:
        return "intermediate"
    return "beginner"
