"""
XP and Leveling System

Manages XP awards, level calculations, and rank titles.

Leveling Curve (cumulative XP needed to reach level n):
- xp_for_level(n) = round(BASE * (n-1)^EXPONENT + LINEAR * (n-1))
- Defaults: BASE=100, EXPONENT=1.5, LINEAR=50
- Level 1 = 0 XP, Level 2 = 150 XP, Level 3 = 383 XP, Level 5 = 1000 XP

XP Award Rules:
- Low priority task: 10 XP
- Medium priority task: 15 XP
- High priority task: 25 XP

lifetime_xp is the only source of truth for level; current_xp is the
remainder above the current level's threshold.
"""

from typing import Any, Dict, Union
import logging

from quest_engine import config
from quest_engine.exceptions import InvalidAmountError, ValidationError
from quest_engine.models.completion import TaskPriority, XpAward
from quest_engine.models.progression import UserProgression

logger = logging.getLogger(__name__)

# (minimum level, title), highest first
RANK_TITLES = [
    (100, "Legendary Quest Master"),
    (75, "Epic Champion"),
    (50, "Master Achiever"),
    (40, "Expert Quester"),
    (30, "Veteran Adventurer"),
    (25, "Productivity Knight"),
    (20, "Task Commander"),
    (15, "Achievement Hunter"),
    (10, "Quest Apprentice"),
    (5, "Rising Star"),
    (3, "Task Initiate"),
    (1, "Task Novice"),
]


def xp_for_level(level: int) -> int:
    """
    Cumulative lifetime XP required to reach a level

    Raises:
        ValidationError: level < 1
    """
    if level < 1:
        raise ValidationError("Level must be >= 1", field="level", value=level)
    steps = level - 1
    return int(round(
        config.XP_CURVE_BASE * steps ** config.XP_CURVE_EXPONENT
        + config.XP_CURVE_LINEAR * steps
    ))


def level_for_xp(lifetime_xp: int) -> int:
    """
    Largest level whose threshold is <= lifetime_xp

    Exponential probe for an upper bound, then binary search.
    Negative XP is treated as 0 (level 1).
    """
    if lifetime_xp <= 0:
        return 1

    # xp_for_level(high) > lifetime_xp after the probe
    low, high = 1, 2
    while xp_for_level(high) <= lifetime_xp:
        low, high = high, high * 2

    while high - low > 1:
        mid = (low + high) // 2
        if xp_for_level(mid) <= lifetime_xp:
            low = mid
        else:
            high = mid
    return low


def xp_for_priority(priority: Union[TaskPriority, str]) -> int:
    """
    Base XP award for a task priority

    Raises:
        ValidationError: unknown priority
    """
    try:
        priority = TaskPriority(priority)
    except ValueError:
        raise ValidationError(
            f"Unknown priority '{priority}'",
            field="priority",
            value=priority
        )

    return {
        TaskPriority.LOW: config.XP_PRIORITY_LOW,
        TaskPriority.MEDIUM: config.XP_PRIORITY_MEDIUM,
        TaskPriority.HIGH: config.XP_PRIORITY_HIGH,
    }[priority]


def rank_title(level: int) -> str:
    """Cosmetic title for a level"""
    for min_level, title in RANK_TITLES:
        if level >= min_level:
            return title
    return RANK_TITLES[-1][1]


def calculate_level_from_xp(lifetime_xp: int) -> Dict[str, Any]:
    """
    Calculate level and progress from lifetime XP

    Returns:
        {
            'current_level': int,
            'rank_title': str,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int,
            'progress_percentage': float (0-100)
        }
    """
    lifetime_xp = max(lifetime_xp, 0)
    level = level_for_xp(lifetime_xp)
    level_floor = xp_for_level(level)
    next_threshold = xp_for_level(level + 1)
    span = next_threshold - level_floor
    xp_in_level = lifetime_xp - level_floor

    return {
        "current_level": level,
        "rank_title": rank_title(level),
        "xp_in_current_level": xp_in_level,
        "xp_to_next_level": next_threshold - lifetime_xp,
        "total_xp_for_next_level": next_threshold,
        "progress_percentage": round(xp_in_level / span * 100, 1),
    }


def award_xp(progression: UserProgression, amount: int) -> XpAward:
    """
    Add XP to a progression and recompute its level

    Args:
        progression: Current state (not modified)
        amount: XP to add, must be >= 0

    Returns:
        XpAward with the new progression and level-up information

    Raises:
        InvalidAmountError: amount < 0
    """
    if amount < 0:
        raise InvalidAmountError(amount, user_id=progression.user_id, operation="award_xp")

    old_level = progression.level
    new_lifetime = progression.lifetime_xp + amount
    new_level = level_for_xp(new_lifetime)

    updated = progression.evolve(
        lifetime_xp=new_lifetime,
        level=new_level,
        current_xp=new_lifetime - xp_for_level(new_level),
    )
    leveled_up = new_level > old_level

    logger.info(
        f"Awarded {amount} XP to user {progression.user_id}. "
        f"Total: {new_lifetime} XP, Level: {new_level}"
    )
    if leveled_up:
        logger.info(f"User {progression.user_id} leveled up from {old_level} to {new_level}!")

    return XpAward(
        progression=updated,
        amount=amount,
        leveled_up=leveled_up,
        old_level=old_level,
        new_level=new_level,
    )
