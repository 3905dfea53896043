"""
Achievement System

Evaluates the achievement catalog against a history aggregate and records
unlocks through the progression store.

Rules:
- Only keys not yet unlocked by the user are candidates
- Every candidate predicate is evaluated before anything is unlocked
- If statistics can't be gathered nothing is unlocked (fail closed)
- Unlocking is idempotent: a repeated unlock is a no-op returning None
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional
import logging

from quest_engine.exceptions import AchievementUnlockError, AggregateFetchError, ValidationError
from quest_engine.gamification.achievement_catalog import ACHIEVEMENTS
from quest_engine.models.achievement import (
    AchievementDefinition,
    AchievementProgress,
    AchievementStatus,
    AchievementUnlock,
)
from quest_engine.models.completion import HistoryAggregate, HistoryEntry, TaskPriority
from quest_engine.models.progression import UserProgression
from quest_engine.utils.datetime_helpers import align_to, start_of_day, start_of_week

logger = logging.getLogger(__name__)


def build_history_aggregate(
    entries: Iterable[HistoryEntry],
    progression: UserProgression,
    now: datetime,
    perfect_day: Optional[bool] = None
) -> HistoryAggregate:
    """
    Summarize a user's history as of `now`

    Day/week/hour buckets are read in now's timezone. Entries after `now`
    are ignored.
    """
    day_start = start_of_day(now)
    week_start = start_of_week(now)
    hour_ago = now - timedelta(hours=1)

    total = 0
    today = 0
    this_week = 0
    last_hour = 0
    xp_today = 0
    high_priority = 0
    by_hour: Counter = Counter()
    weekdays = set()

    for entry in entries:
        completed_at = align_to(entry.completed_at, now)
        if completed_at > now:
            continue

        total += 1
        by_hour[completed_at.hour] += 1
        if entry.priority == TaskPriority.HIGH:
            high_priority += 1
        if completed_at >= week_start:
            this_week += 1
            weekdays.add(completed_at.weekday())
        if completed_at >= day_start:
            today += 1
            xp_today += entry.xp_earned
        if completed_at > hour_ago:
            last_hour += 1

    return HistoryAggregate(
        total_tasks_completed=total,
        current_streak=progression.current_streak,
        longest_streak=progression.longest_streak,
        level=progression.level,
        lifetime_xp=progression.lifetime_xp,
        tasks_completed_today=today,
        tasks_completed_this_week=this_week,
        tasks_completed_last_hour=last_hour,
        xp_earned_today=xp_today,
        high_priority_completed=high_priority,
        completions_by_hour_of_day=dict(by_hour),
        weekdays_completed_this_week=frozenset(weekdays),
        perfect_day_flag=perfect_day,
        as_of=now,
    )


def evaluate_achievements(
    aggregate: HistoryAggregate,
    unlocked_keys: Collection[str],
    catalog: Mapping[str, AchievementDefinition] = ACHIEVEMENTS
) -> List[str]:
    """
    Keys whose predicate holds and that aren't unlocked yet, in catalog order
    """
    return [
        key for key, definition in catalog.items()
        if key not in unlocked_keys and definition.is_met(aggregate)
    ]


def calculate_achievement_progress(
    definition: AchievementDefinition,
    aggregate: HistoryAggregate,
    unlocked: bool = False
) -> Optional[AchievementProgress]:
    """
    Progress toward a milestone achievement

    Returns None for achievements without a tracked metric.
    """
    if definition.progress_metric is None or not definition.milestone:
        return None

    required = definition.milestone
    current = min(getattr(aggregate, definition.progress_metric), required)
    if unlocked:
        current = required

    if unlocked:
        status = AchievementStatus.UNLOCKED
    elif current > 0:
        status = AchievementStatus.IN_PROGRESS
    else:
        status = AchievementStatus.LOCKED

    return AchievementProgress(
        achievement_key=definition.key,
        current=current,
        required=required,
        percentage=round(current / required * 100, 1),
        status=status,
    )


class AchievementService:
    """
    Achievement evaluation and bookkeeping for one progression store.

    Responsibilities:
    - Building history aggregates from the store
    - Checking and unlocking achievements
    - Perfect day evaluation
    - Progress, listing and statistics for display
    """

    def __init__(
        self,
        store,
        catalog: Optional[Mapping[str, AchievementDefinition]] = None
    ):
        """
        Args:
            store: ProgressionStore implementation
            catalog: Achievement catalog (defaults to ACHIEVEMENTS)
        """
        self.store = store
        self.catalog = catalog if catalog is not None else ACHIEVEMENTS
        logger.debug("AchievementService initialized")

    def get_definition(self, key: str) -> AchievementDefinition:
        definition = self.catalog.get(key)
        if definition is None:
            raise ValidationError(f"Unknown achievement '{key}'", field="achievement_key", value=key)
        return definition

    async def fetch_aggregate(
        self,
        user_id: str,
        progression: UserProgression,
        now: datetime,
        perfect_day: Optional[bool] = None
    ) -> HistoryAggregate:
        """
        Build the aggregate from stored history

        Raises:
            AggregateFetchError: history could not be read
        """
        try:
            entries = await self.store.list_history(user_id)
        except Exception as e:
            raise AggregateFetchError(
                message=f"Failed to load history for user {user_id}: {e}",
                user_id=user_id,
                operation="fetch_aggregate",
                cause=e
            ) from e

        return build_history_aggregate(entries, progression, now, perfect_day)

    async def _load_unlocked_keys(self, user_id: str) -> set:
        try:
            return set(await self.store.load_unlocked_keys(user_id))
        except Exception as e:
            raise AggregateFetchError(
                message=f"Failed to load unlocked achievements for user {user_id}: {e}",
                user_id=user_id,
                operation="load_unlocked_keys",
                cause=e
            ) from e

    async def check_achievements(
        self,
        user_id: str,
        progression: UserProgression,
        aggregate: Optional[HistoryAggregate],
        now: datetime
    ) -> List[str]:
        """
        Check the catalog and unlock everything newly earned

        Args:
            user_id: User to evaluate
            progression: Post-update progression (used when aggregate must be fetched)
            aggregate: Pre-built statistics, or None to fetch from history
            now: Evaluation moment, recorded as unlocked_at

        Returns:
            Newly unlocked achievement keys, in catalog order

        Raises:
            AggregateFetchError: statistics unavailable; nothing is unlocked
            AchievementUnlockError: some unlocks failed to write; the rest are
                recorded and listed in unlocked_keys
        """
        if aggregate is None:
            aggregate = await self.fetch_aggregate(user_id, progression, now)
        unlocked_keys = await self._load_unlocked_keys(user_id)

        candidates = evaluate_achievements(aggregate, unlocked_keys, self.catalog)

        newly_unlocked = []
        failed = []
        for key in candidates:
            try:
                record = await self.unlock_achievement(user_id, key, now)
            except Exception as e:
                logger.warning(f"Failed to record achievement {key} for user {user_id}: {e}")
                failed.append(key)
                continue
            if record is not None:
                newly_unlocked.append(key)

        if failed:
            raise AchievementUnlockError(
                newly_unlocked,
                failed,
                user_id=user_id,
                operation="check_achievements"
            )
        return newly_unlocked

    async def unlock_achievement(
        self,
        user_id: str,
        key: str,
        now: datetime
    ) -> Optional[AchievementUnlock]:
        """
        Record an unlock

        Returns:
            The new AchievementUnlock, or None if the user already had it

        Raises:
            ValidationError: key is not in the catalog
        """
        definition = self.get_definition(key)
        record = AchievementUnlock(user_id=user_id, achievement_key=key, unlocked_at=now)

        inserted = await self.store.insert_unlock(record)
        if not inserted:
            logger.debug(f"User {user_id} already has achievement {key}")
            return None

        logger.info(
            f"User {user_id} unlocked achievement: {definition.name} "
            f"({definition.rarity.value}, {definition.points} points)"
        )
        return record

    async def check_perfect_day(
        self,
        user_id: str,
        pending_count: int,
        now: datetime
    ) -> Optional[str]:
        """
        Unlock 'perfect_day' when no pending tasks remain

        Returns:
            'perfect_day' if newly unlocked, otherwise None
        """
        if pending_count > 0 or "perfect_day" not in self.catalog:
            return None

        record = await self.unlock_achievement(user_id, "perfect_day", now)
        return record.achievement_key if record else None

    async def get_achievement_progress(
        self,
        user_id: str,
        key: str,
        aggregate: HistoryAggregate
    ) -> Optional[AchievementProgress]:
        """Progress toward one achievement (None for non-milestone achievements)"""
        definition = self.get_definition(key)
        unlocked_keys = await self.store.load_unlocked_keys(user_id)
        return calculate_achievement_progress(definition, aggregate, key in unlocked_keys)

    async def get_all_achievements(
        self,
        user_id: str,
        aggregate: Optional[HistoryAggregate] = None
    ) -> List[Dict[str, Any]]:
        """
        Every catalog entry with the user's status

        Returns:
            [{'key', 'name', 'description', 'icon', 'category', 'rarity',
              'points', 'status', 'unlocked_at', 'progress'}]
        """
        unlocks = {u.achievement_key: u for u in await self.store.list_unlocks(user_id)}

        achievements = []
        for key, definition in self.catalog.items():
            unlock = unlocks.get(key)
            progress = None
            if aggregate is not None:
                progress = calculate_achievement_progress(definition, aggregate, unlock is not None)

            if unlock is not None:
                status = AchievementStatus.UNLOCKED
            elif progress is not None:
                status = progress.status
            else:
                status = AchievementStatus.LOCKED

            achievements.append({
                "key": key,
                "name": definition.name,
                "description": definition.description,
                "icon": definition.icon,
                "category": definition.category.value,
                "rarity": definition.rarity.value,
                "points": definition.points,
                "status": status.value,
                "unlocked_at": unlock.unlocked_at if unlock else None,
                "progress": progress.model_dump() if progress else None,
            })

        return achievements

    async def get_achievements_by_category(
        self,
        user_id: str,
        aggregate: Optional[HistoryAggregate] = None
    ) -> Dict[str, List[Dict[str, Any]]]:
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for achievement in await self.get_all_achievements(user_id, aggregate):
            grouped.setdefault(achievement["category"], []).append(achievement)
        return grouped

    async def get_achievement_stats(self, user_id: str) -> Dict[str, Any]:
        """
        Unlock statistics

        Returns:
            {
                'total': int,
                'unlocked': int,
                'percentage': float,
                'points': int,
                'by_rarity': {rarity: {'total': int, 'unlocked': int}}
            }
        """
        unlocked_keys = {u.achievement_key for u in await self.store.list_unlocks(user_id)}
        by_rarity: Dict[str, Dict[str, int]] = {}
        points = 0

        for key, definition in self.catalog.items():
            bucket = by_rarity.setdefault(definition.rarity.value, {"total": 0, "unlocked": 0})
            bucket["total"] += 1
            if key in unlocked_keys:
                bucket["unlocked"] += 1
                points += definition.points

        total = len(self.catalog)
        unlocked = len(unlocked_keys & set(self.catalog))
        return {
            "total": total,
            "unlocked": unlocked,
            "percentage": round(unlocked / total * 100, 1) if total else 0.0,
            "points": points,
            "by_rarity": by_rarity,
        }

    async def get_recent_achievements(self, user_id: str, limit: int = 5) -> List[AchievementUnlock]:
        unlocks = await self.store.list_unlocks(user_id)
        return sorted(unlocks, key=lambda u: u.unlocked_at, reverse=True)[:limit]

    async def mark_achievements_notified(
        self,
        user_id: str,
        keys: Optional[Collection[str]] = None
    ) -> int:
        """
        Flag unlocks as notified

        Args:
            keys: Specific keys, or None for every pending unlock

        Returns:
            Number of unlocks newly flagged
        """
        count = await self.store.mark_notified(user_id, keys)
        if count:
            logger.debug(f"Marked {count} achievement(s) notified for user {user_id}")
        return count
