"""
Achievement catalog

Closed, ordered set of unlockable achievements. Each entry is a predicate over
a HistoryAggregate; evaluation order is insertion order of ACHIEVEMENTS.

Categories:
- Task Master: total completions (1 → 50,000)
- Streak Keeper: consecutive days (3 → 1000)
- Level Champion: levels (5 → 200)
- Time Master: time-of-day and weekend patterns
- Speed Demon: completions within the last hour
- Consistency: daily/weekly volume and perfect days
- Special Dates: calendar curiosities
- XP Legends / Priority / Curiosities
"""

from typing import Callable, Dict, List

from quest_engine.models.achievement import (
    AchievementCategory as Category,
    AchievementDefinition,
    AchievementRarity as Rarity,
)
from quest_engine.models.completion import HistoryAggregate

Predicate = Callable[[HistoryAggregate], bool]


# ==========================================
# Predicate builders
# ==========================================

def at_least(metric: str, threshold: int) -> Predicate:
    def predicate(aggregate: HistoryAggregate) -> bool:
        return getattr(aggregate, metric) >= threshold
    return predicate


def exactly(metric: str, value: int) -> Predicate:
    def predicate(aggregate: HistoryAggregate) -> bool:
        return getattr(aggregate, metric) == value
    return predicate


def completed_in_hours(hours: range) -> Predicate:
    def predicate(aggregate: HistoryAggregate) -> bool:
        return any(aggregate.completions_by_hour_of_day.get(h, 0) > 0 for h in hours)
    return predicate


def on_day(check: Callable[[HistoryAggregate], bool], min_tasks: int = 1) -> Predicate:
    """Calendar predicate on as_of, requiring min_tasks completions that day"""
    def predicate(aggregate: HistoryAggregate) -> bool:
        if aggregate.as_of is None or aggregate.tasks_completed_today < min_tasks:
            return False
        return check(aggregate)
    return predicate


def _is_palindrome_date(aggregate: HistoryAggregate) -> bool:
    mmdd = aggregate.as_of.strftime("%m%d")
    return mmdd == mmdd[::-1]


def _milestone(
    key: str,
    name: str,
    description: str,
    category: Category,
    rarity: Rarity,
    metric: str,
    threshold: int,
    icon: str = "🏆",
) -> AchievementDefinition:
    return AchievementDefinition(
        key=key,
        name=name,
        description=description,
        icon=icon,
        category=category,
        rarity=rarity,
        progress_metric=metric,
        milestone=threshold,
        predicate=at_least(metric, threshold),
    )


def _special(
    key: str,
    name: str,
    description: str,
    category: Category,
    rarity: Rarity,
    predicate: Predicate,
    icon: str = "⭐",
) -> AchievementDefinition:
    return AchievementDefinition(
        key=key,
        name=name,
        description=description,
        icon=icon,
        category=category,
        rarity=rarity,
        predicate=predicate,
    )


# ==========================================
# Catalog
# ==========================================

_TASK_TIERS = [
    ("first_task", "First Step", 1, Rarity.COMMON),
    ("tasks_10", "Task Initiator", 10, Rarity.COMMON),
    ("tasks_50", "Task Apprentice", 50, Rarity.COMMON),
    ("tasks_100", "Productivity Pro", 100, Rarity.RARE),
    ("tasks_250", "Task Virtuoso", 250, Rarity.RARE),
    ("tasks_500", "Task Champion", 500, Rarity.EPIC),
    ("tasks_1000", "Task Legend", 1000, Rarity.EPIC),
    ("tasks_2500", "Task Overlord", 2500, Rarity.LEGENDARY),
    ("tasks_5000", "Task Deity", 5000, Rarity.LEGENDARY),
    ("tasks_10000", "Task Emperor", 10000, Rarity.MYTHIC),
    ("tasks_25000", "Task Immortal", 25000, Rarity.MYTHIC),
    ("tasks_50000", "Task Transcendent", 50000, Rarity.MYTHIC),
]

_STREAK_TIERS = [
    ("streak_3", "Streak Starter", 3, Rarity.COMMON),
    ("streak_7", "Week Warrior", 7, Rarity.COMMON),
    ("streak_14", "Fortnight Fighter", 14, Rarity.RARE),
    ("streak_30", "Monthly Master", 30, Rarity.RARE),
    ("streak_60", "Consistency Champion", 60, Rarity.EPIC),
    ("quarterly_champion", "Quarterly Champion", 90, Rarity.EPIC),
    ("streak_100", "Century Champion", 100, Rarity.EPIC),
    ("streak_365", "Year-long Devotee", 365, Rarity.LEGENDARY),
    ("streak_500", "Eternal Flame", 500, Rarity.MYTHIC),
    ("streak_1000", "Millennium Master", 1000, Rarity.MYTHIC),
]

_LEVEL_TIERS = [
    ("level_5", "Rising Star", 5, Rarity.COMMON),
    ("level_10", "Dedicated Achiever", 10, Rarity.COMMON),
    ("level_25", "Quest Expert", 25, Rarity.RARE),
    ("level_50", "Master Quester", 50, Rarity.EPIC),
    ("level_75", "Elite Adventurer", 75, Rarity.EPIC),
    ("level_100", "Legendary Hero", 100, Rarity.LEGENDARY),
    ("level_150", "Ascended Master", 150, Rarity.MYTHIC),
    ("level_200", "Divine Champion", 200, Rarity.MYTHIC),
]

_SPEED_TIERS = [
    ("speed_3_in_hour", "Quick Starter", 3, Rarity.COMMON),
    ("speed_5_in_hour", "Speed Demon", 5, Rarity.RARE),
    ("speed_10_in_hour", "Lightning Fast", 10, Rarity.EPIC),
    ("speed_15_in_hour", "Task Hurricane", 15, Rarity.LEGENDARY),
    ("speed_20_in_hour", "Task Tornado", 20, Rarity.MYTHIC),
]


def build_default_catalog() -> Dict[str, AchievementDefinition]:
    """Build the ordered achievement catalog"""
    entries: List[AchievementDefinition] = []

    for key, name, n, rarity in _TASK_TIERS:
        description = "Complete your first task" if n == 1 else f"Complete {n:,} tasks"
        entries.append(_milestone(
            key, name, description, Category.TASK_MASTER, rarity,
            "total_tasks_completed", n, icon="✅",
        ))

    # Streak achievements track the best streak so a later break can't hide them
    for key, name, n, rarity in _STREAK_TIERS:
        entries.append(_milestone(
            key, name, f"Maintain a {n}-day streak", Category.STREAK_KEEPER, rarity,
            "longest_streak", n, icon="🔥",
        ))

    for key, name, n, rarity in _LEVEL_TIERS:
        entries.append(_milestone(
            key, name, f"Reach level {n}", Category.LEVEL_CHAMPION, rarity,
            "level", n, icon="🎖️",
        ))

    entries += [
        _special("early_bird", "Early Bird", "Complete a task before 9 AM",
                 Category.TIME_MASTER, Rarity.COMMON, completed_in_hours(range(0, 9)), icon="🌅"),
        _special("dawn_raider", "Dawn Raider", "Complete a task before 6 AM",
                 Category.TIME_MASTER, Rarity.RARE, completed_in_hours(range(0, 6)), icon="🌄"),
        _special("night_owl", "Night Owl", "Complete a task after 9 PM",
                 Category.TIME_MASTER, Rarity.COMMON, completed_in_hours(range(21, 24)), icon="🦉"),
        _special("midnight_warrior", "Midnight Warrior", "Complete a task after midnight",
                 Category.TIME_MASTER, Rarity.RARE, completed_in_hours(range(0, 1)), icon="🌙"),
        _special("weekend_warrior", "Weekend Warrior", "Complete tasks on Saturday and Sunday",
                 Category.TIME_MASTER, Rarity.RARE,
                 lambda a: {5, 6} <= a.weekdays_completed_this_week, icon="🏖️"),
    ]

    for key, name, n, rarity in _SPEED_TIERS:
        entries.append(_milestone(
            key, name, f"Complete {n} tasks in one hour", Category.SPEED_DEMON, rarity,
            "tasks_completed_last_hour", n, icon="⚡",
        ))

    entries += [
        _special("perfect_day", "Perfect Day", "Complete all tasks in a day",
                 Category.CONSISTENCY, Rarity.RARE, lambda a: a.perfect_day_flag is True, icon="💯"),
        # Unlike the streak tiers this one needs the streak to be live
        _milestone("weekly_warrior", "Weekly Warrior", "Complete tasks every day for 7 consecutive days",
                   Category.CONSISTENCY, Rarity.RARE, "current_streak", 7, icon="🗓️"),
        _milestone("daily_dozen", "Daily Dozen", "Complete 12 or more tasks in a single day",
                   Category.CONSISTENCY, Rarity.RARE, "tasks_completed_today", 12),
        _milestone("daily_50", "Daily Dominator", "Complete 50 tasks in one day",
                   Category.CONSISTENCY, Rarity.MYTHIC, "tasks_completed_today", 50),
        _milestone("weekly_200", "Weekly Wonder", "Complete 200 tasks in one week",
                   Category.CONSISTENCY, Rarity.LEGENDARY, "tasks_completed_this_week", 200),
    ]

    entries += [
        _special("new_year_resolution", "New Year Resolution", "Complete a task on January 1st",
                 Category.SPECIAL_DATES, Rarity.RARE,
                 on_day(lambda a: (a.as_of.month, a.as_of.day) == (1, 1)), icon="🎆"),
        _special("leap_day_legend", "Leap Day Legend", "Complete a task on February 29th",
                 Category.SPECIAL_DATES, Rarity.LEGENDARY,
                 on_day(lambda a: (a.as_of.month, a.as_of.day) == (2, 29)), icon="🐸"),
        _special("palindrome_day", "Palindrome Power",
                 "Complete tasks on a palindrome date (like 12/21)",
                 Category.SPECIAL_DATES, Rarity.LEGENDARY, on_day(_is_palindrome_date), icon="🔁"),
        _special("friday_13th", "Lucky 13", "Complete 13 tasks on Friday the 13th",
                 Category.SPECIAL_DATES, Rarity.LEGENDARY,
                 on_day(lambda a: a.as_of.weekday() == 4 and a.as_of.day == 13, min_tasks=13),
                 icon="🍀"),
    ]

    entries += [
        _milestone("xp_millionaire", "XP Millionaire", "Earn 1,000,000 lifetime XP",
                   Category.XP_LEGENDS, Rarity.LEGENDARY, "lifetime_xp", 1_000_000, icon="💰"),
        _special("perfect_score", "Perfect Score", "Reach exactly 10,000 XP (no more, no less)",
                 Category.XP_LEGENDS, Rarity.MYTHIC, exactly("lifetime_xp", 10_000), icon="🎯"),
        _milestone("daily_xp_1000", "XP Explosion", "Earn 1000 XP in a single day",
                   Category.XP_LEGENDS, Rarity.EPIC, "xp_earned_today", 1000, icon="💥"),
        _milestone("priority_perfectionist", "Priority Perfectionist",
                   "Complete 50 high-priority tasks",
                   Category.PRIORITY, Rarity.RARE, "high_priority_completed", 50, icon="🚩"),
        _milestone("priority_master_500", "Priority Prophet", "Complete 500 high-priority tasks",
                   Category.PRIORITY, Rarity.EPIC, "high_priority_completed", 500, icon="🚩"),
        _special("binary_master", "Binary Master", "Complete exactly 1024 tasks (2^10)",
                 Category.CURIOSITIES, Rarity.EPIC, exactly("total_tasks_completed", 1024), icon="💾"),
        _special("golden_ratio", "Golden Ratio", "Complete exactly 1618 tasks (golden ratio × 1000)",
                 Category.CURIOSITIES, Rarity.MYTHIC, exactly("total_tasks_completed", 1618), icon="🐚"),
    ]

    return {definition.key: definition for definition in entries}


ACHIEVEMENTS: Dict[str, AchievementDefinition] = build_default_catalog()
