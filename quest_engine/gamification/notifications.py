"""
Notification decisions

Turns progression outcomes into notification intents. Delivery is the
caller's job; this module only decides what is worth telling the user.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from pydantic import BaseModel, Field

from quest_engine.gamification.achievement_catalog import ACHIEVEMENTS
from quest_engine.gamification.character_system import age_for_level
from quest_engine.models.achievement import AchievementDefinition
from quest_engine.models.completion import CompletionResult, StreakReminder

logger = logging.getLogger(__name__)

RARITY_EMOJI = {
    "mythic": "🌌",
    "legendary": "💫",
    "epic": "🥇",
    "rare": "🥈",
    "common": "🥉",
}


class NotificationKind(str, Enum):
    LEVEL_UP = "level_up"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    STREAK_MILESTONE = "streak_milestone"
    STREAK_BROKEN = "streak_broken"
    STREAK_EXPIRING = "streak_expiring"
    AGE_REACHED = "age_reached"


class NotificationIntent(BaseModel):
    """Something the notifier should tell a user"""
    user_id: str
    kind: NotificationKind
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


def format_achievement_unlock_message(achievement: AchievementDefinition) -> str:
    """
    Format achievement unlock message for celebration

    Returns:
        Formatted celebration message
    """
    rarity_symbol = RARITY_EMOJI.get(achievement.rarity.value, "🏆")

    return f"""🎉 ACHIEVEMENT UNLOCKED! 🎉

{rarity_symbol} {achievement.icon} {achievement.name} {rarity_symbol}

{achievement.description}

⭐ +{achievement.points} points ({achievement.rarity.value.title()})"""


def format_level_up_message(result: CompletionResult) -> str:
    return (
        f"⬆️ Level up! You reached level {result.new_level}.\n"
        f"Rank: {result.rank_title}"
    )


def build_notifications(
    result: CompletionResult,
    catalog: Optional[Mapping[str, AchievementDefinition]] = None
) -> List[NotificationIntent]:
    """
    Decide which parts of a completion result are notify-worthy

    Order: level up, age reached, achievements, streak milestone, streak broken.
    Unknown achievement keys are skipped with a warning.
    """
    catalog = catalog if catalog is not None else ACHIEVEMENTS
    intents: List[NotificationIntent] = []

    if result.leveled_up:
        intents.append(NotificationIntent(
            user_id=result.user_id,
            kind=NotificationKind.LEVEL_UP,
            message=format_level_up_message(result),
            data={"old_level": result.old_level, "new_level": result.new_level},
        ))

    if result.age_reached:
        age = age_for_level(result.new_level)
        intents.append(NotificationIntent(
            user_id=result.user_id,
            kind=NotificationKind.AGE_REACHED,
            message=f"🏛️ Your character entered the {age.name}!\n{age.description}",
            data={"age_key": result.age_reached, "unlocked_items": list(result.unlocked_items)},
        ))

    for key in result.new_achievements:
        definition = catalog.get(key)
        if definition is None:
            logger.warning(f"No catalog entry for unlocked achievement {key}, skipping notification")
            continue
        intents.append(NotificationIntent(
            user_id=result.user_id,
            kind=NotificationKind.ACHIEVEMENT_UNLOCKED,
            message=format_achievement_unlock_message(definition),
            data={"achievement_key": key, "points": definition.points},
        ))

    streak = result.streak_info
    if streak.milestone_reached:
        intents.append(NotificationIntent(
            user_id=result.user_id,
            kind=NotificationKind.STREAK_MILESTONE,
            message=f"🏆 {streak.milestone_reached}-day streak milestone reached! 🔥",
            data={"streak": streak.milestone_reached},
        ))

    if streak.broken:
        intents.append(NotificationIntent(
            user_id=result.user_id,
            kind=NotificationKind.STREAK_BROKEN,
            message=f"Streak reset. Previous: {streak.previous} days. Starting fresh! Day 1 💪",
            data={"previous_streak": streak.previous},
        ))

    return intents


def build_streak_reminder_notifications(reminders: Iterable[StreakReminder]) -> List[NotificationIntent]:
    """One reminder intent per expiring streak"""
    return [
        NotificationIntent(
            user_id=reminder.user_id,
            kind=NotificationKind.STREAK_EXPIRING,
            message=(
                f"⏰ Your {reminder.current_streak}-day streak ends at "
                f"{reminder.expires_at:%H:%M}. Complete a task to keep it alive!"
            ),
            data={
                "current_streak": reminder.current_streak,
                "expires_at": reminder.expires_at.isoformat(),
            },
        )
        for reminder in reminders
    ]
