"""
Progression rules for quest-engine

- XP and leveling
- Daily streaks with grace period
- Achievement catalog and evaluation
- Character ages and equipment
- Notification decisions
"""

from quest_engine.gamification.xp_system import (
    award_xp,
    calculate_level_from_xp,
    level_for_xp,
    rank_title,
    xp_for_level,
    xp_for_priority,
)
from quest_engine.gamification.streak_system import (
    detect_broken_streaks,
    is_within_grace_period,
    update_streak,
    users_with_expiring_streaks,
)
from quest_engine.gamification.achievement_system import AchievementService, evaluate_achievements

__all__ = [
    "award_xp",
    "calculate_level_from_xp",
    "level_for_xp",
    "rank_title",
    "xp_for_level",
    "xp_for_priority",
    "detect_broken_streaks",
    "is_within_grace_period",
    "update_streak",
    "users_with_expiring_streaks",
    "AchievementService",
    "evaluate_achievements",
]
