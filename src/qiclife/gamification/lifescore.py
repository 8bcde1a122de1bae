"""LifeScore, XP and level arithmetic.

Levels are flat: every 100 XP is one level, starting at level 1.
LifeScore is an integer on 0..100.
"""

from __future__ import annotations

import math

MAX_LIFESCORE = 100
XP_PER_LEVEL = 100


def clamp_lifescore(value: float) -> int:
    """Round and clamp to 0..MAX_LIFESCORE. NaN counts as 0."""
    if isinstance(value, float) and math.isnan(value):
        return 0
    return max(0, min(MAX_LIFESCORE, round(value)))


def lifescore_percentage(value: float) -> int:
    return round(clamp_lifescore(value) / MAX_LIFESCORE * 100)


def xp_for_level(level: int) -> int:
    """Total XP needed to leave ``level``."""
    return max(0, int(level) * XP_PER_LEVEL)


def level_from_xp(xp: int) -> int:
    return max(0, int(xp)) // XP_PER_LEVEL + 1


def xp_progress(xp: int, level: int) -> dict[str, int]:
    """Progress through the current level as ``{current, required, percentage}``."""
    level = max(1, int(level))
    level_start = (level - 1) * XP_PER_LEVEL
    level_end = level * XP_PER_LEVEL
    current = max(0, int(xp) - level_start)
    required = max(1, level_end - level_start)
    return {
        "current": current,
        "required": required,
        "percentage": round(current / required * 100),
    }


def lifescore_status(value: float) -> str:
    pct = lifescore_percentage(value)
    if pct >= 80:
        return "excellent"
    if pct >= 60:
        return "high"
    if pct >= 40:
        return "medium"
    return "low"
