"""
ProgressionService - Progression Orchestration

Turns task completions into streak updates, XP, level-ups, achievements and
character unlocks, and runs the periodic streak maintenance sweep.
"""

import asyncio
import logging
import weakref
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from quest_engine import config
from quest_engine.exceptions import AchievementUnlockError, TaskNotFoundError, wrap_external_exception
from quest_engine.gamification.achievement_system import AchievementService
from quest_engine.gamification.character_system import (
    age_for_level,
    age_reached,
    items_unlocked_between,
    next_age,
)
from quest_engine.gamification.streak_system import (
    detect_broken_streaks,
    get_streak_stats,
    is_streak_milestone,
    update_streak,
    users_with_expiring_streaks,
)
from quest_engine.gamification.xp_system import (
    award_xp,
    calculate_level_from_xp,
    rank_title,
    xp_for_priority,
)
from quest_engine.models.completion import (
    CompletionEvent,
    CompletionResult,
    HistoryEntry,
    StreakInfo,
    StreakReminder,
    TaskInfo,
)
from quest_engine.models.progression import UserProgression

logger = logging.getLogger(__name__)


class UserLockRegistry:
    """
    One asyncio.Lock per user id.

    Locks live only while someone holds a reference, so idle users don't
    accumulate entries.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock


class ProgressionService:
    """
    Service for progression updates.

    Responsibilities:
    - Resolving completed tasks
    - Streak and XP updates (serialized per user)
    - History bookkeeping
    - Achievement and perfect day checks (degrade gracefully)
    - Character age and equipment unlocks
    - Streak decay sweep and expiry reminders
    """

    def __init__(
        self,
        store,
        task_source,
        achievements: Optional[AchievementService] = None,
        locks: Optional[UserLockRegistry] = None
    ):
        """
        Initialize ProgressionService.

        Args:
            store: ProgressionStore implementation
            task_source: TaskSource implementation
            achievements: AchievementService (built from store if omitted)
            locks: Per-user lock registry (share one between services on the same store)
        """
        self.store = store
        self.task_source = task_source
        self.achievements = achievements or AchievementService(store)
        self.locks = locks or UserLockRegistry()
        logger.debug("ProgressionService initialized")

    # ==========================================
    # Completion processing
    # ==========================================

    async def process_completion(self, event: CompletionEvent) -> CompletionResult:
        """
        Process one task completion.

        Steps:
        1. Resolve the task (TaskNotFoundError, nothing mutated)
        2. Update streak
        3. Award XP by priority, save progression
        4. Append history entry
        5. Check achievements against the updated progression
        6. Check perfect day
        7. Check character age / equipment unlocks

        Steps 2-4 are fatal on failure; earlier committed writes are not
        rolled back. Steps 5-6 log a warning and flag achievement_check_failed;
        unlocks recorded despite a failure are still reported.

        Args:
            event: Completion reported by the task collaborator

        Returns:
            CompletionResult

        Raises:
            TaskNotFoundError: Task can't be resolved
            PersistenceUnavailableError: Storage unreachable
        """
        user_id = event.user_id
        now = event.completed_at

        task = await self._resolve_task(event)
        xp_amount = xp_for_priority(event.priority)

        async with self.locks.lock_for(user_id):
            progression = await self._load_or_create(user_id, now)

            streak_update = update_streak(progression, now)
            award = award_xp(streak_update.progression, xp_amount)
            progression = award.progression.evolve(updated_at=now)

            await self._save(progression, operation="save_progression")
            await self._append_history(HistoryEntry(
                user_id=user_id,
                task_id=event.task_id,
                task_title=event.task_title or task.title,
                xp_earned=xp_amount,
                completed_at=now,
                priority=event.priority,
            ))

            new_achievements, check_failed = await self._check_achievements(user_id, progression, now)
            perfect_day = await self._check_perfect_day(user_id, now)
            if perfect_day and perfect_day not in new_achievements:
                new_achievements.append(perfect_day)

        new_age = age_reached(award.old_level, award.new_level)
        unlocked_items = []
        if award.leveled_up:
            unlocked_items = [item.key for item in items_unlocked_between(award.old_level, award.new_level)]

        current_streak = progression.current_streak
        milestone = None
        if current_streak != streak_update.previous_streak and is_streak_milestone(current_streak):
            milestone = current_streak

        logger.info(
            f"Processed completion of task {event.task_id} for user {user_id}: "
            f"+{xp_amount} XP, level {award.new_level}, streak {current_streak}, "
            f"{len(new_achievements)} new achievement(s)"
        )

        return CompletionResult(
            user_id=user_id,
            task_id=event.task_id,
            xp_awarded=xp_amount,
            lifetime_xp=progression.lifetime_xp,
            leveled_up=award.leveled_up,
            old_level=award.old_level,
            new_level=award.new_level,
            rank_title=rank_title(award.new_level),
            streak_info=StreakInfo(
                current=current_streak,
                longest=progression.longest_streak,
                previous=streak_update.previous_streak,
                broken=streak_update.streak_broken,
                milestone_reached=milestone,
            ),
            new_achievements=new_achievements,
            achievement_check_failed=check_failed,
            age_reached=new_age.key if new_age else None,
            unlocked_items=unlocked_items,
        )

    async def _resolve_task(self, event: CompletionEvent) -> TaskInfo:
        try:
            task = await self.task_source.get_task(event.task_id, event.user_id)
        except Exception as e:
            raise wrap_external_exception(
                e,
                operation="get_task",
                user_id=event.user_id,
                context={"task_id": event.task_id}
            ) from e

        if task is None:
            raise TaskNotFoundError(event.task_id, user_id=event.user_id, operation="process_completion")
        return task

    async def _load_or_create(self, user_id: str, now: datetime) -> UserProgression:
        try:
            progression = await self.store.load_progression(user_id)
        except Exception as e:
            raise wrap_external_exception(e, operation="load_progression", user_id=user_id) from e

        if progression is None:
            logger.info(f"Creating progression for new user {user_id}")
            progression = UserProgression.new(user_id, now)
        return progression

    async def _save(self, progression: UserProgression, operation: str) -> None:
        try:
            await self.store.save_progression(progression)
        except Exception as e:
            raise wrap_external_exception(e, operation=operation, user_id=progression.user_id) from e

    async def _append_history(self, entry: HistoryEntry) -> None:
        try:
            await self.store.append_history(entry)
        except Exception as e:
            raise wrap_external_exception(
                e,
                operation="append_history",
                user_id=entry.user_id,
                context={"task_id": entry.task_id}
            ) from e

    async def _check_achievements(
        self,
        user_id: str,
        progression: UserProgression,
        now: datetime
    ) -> Tuple[List[str], bool]:
        """Returns (new keys, failed)"""
        try:
            aggregate = await self.achievements.fetch_aggregate(user_id, progression, now)
            keys = await self.achievements.check_achievements(user_id, progression, aggregate, now)
            return keys, False
        except AchievementUnlockError as e:
            logger.warning(
                f"Achievement check for user {user_id} partially failed: "
                f"recorded {e.unlocked_keys}, failed {e.failed_keys}"
            )
            return e.unlocked_keys, True
        except Exception as e:
            logger.warning(f"Achievement check failed for user {user_id}: {e}", exc_info=True)
            return [], True

    async def _check_perfect_day(self, user_id: str, now: datetime) -> Optional[str]:
        try:
            pending = await self.task_source.get_pending_task_count(user_id)
            return await self.achievements.check_perfect_day(user_id, pending, now)
        except Exception as e:
            logger.warning(f"Perfect day check failed for user {user_id}: {e}", exc_info=True)
            return None

    # ==========================================
    # Streak maintenance
    # ==========================================

    async def update_streak_maintenance(self, now: datetime) -> int:
        """
        Reset streaks whose grace period elapsed without a completion.

        Each candidate is re-read and re-checked under its user lock so an
        in-flight completion is never overwritten. A failure for one user is
        logged and the sweep continues.

        Returns:
            Number of streaks reset to 0

        Raises:
            PersistenceUnavailableError: progressions can't be listed
        """
        try:
            progressions = await self.store.list_progressions()
            completed_today = await self.store.users_with_completion_on(now.date(), now)
        except Exception as e:
            raise wrap_external_exception(e, operation="update_streak_maintenance") from e

        candidates = detect_broken_streaks(progressions, now, completed_today)
        reset_count = 0

        for user_id in candidates:
            try:
                async with self.locks.lock_for(user_id):
                    current = await self.store.load_progression(user_id)
                    if current is None or not detect_broken_streaks([current], now, completed_today):
                        continue

                    await self.store.save_progression(current.evolve(current_streak=0, updated_at=now))
                    reset_count += 1
                    logger.info(f"Reset expired {current.current_streak}-day streak for user {user_id}")
            except Exception as e:
                logger.error(f"Failed to reset streak for user {user_id}: {e}", exc_info=True)

        logger.info(f"Streak maintenance complete: {reset_count}/{len(candidates)} streak(s) reset")
        return reset_count

    async def get_streak_reminders(
        self,
        now: datetime,
        hours: Optional[int] = None
    ) -> List[StreakReminder]:
        """
        Users whose streak expires within `hours` (default STREAK_WARNING_HOURS)
        """
        warn_hours = hours if hours is not None else config.STREAK_WARNING_HOURS
        try:
            progressions = await self.store.list_progressions()
            completed_today = await self.store.users_with_completion_on(now.date(), now)
        except Exception as e:
            raise wrap_external_exception(e, operation="get_streak_reminders") from e

        reminders = users_with_expiring_streaks(progressions, now, warn_hours, completed_today)
        logger.debug(f"Found {len(reminders)} expiring streak(s) within {warn_hours}h")
        return reminders

    # ==========================================
    # Stats
    # ==========================================

    async def get_user_stats(self, user_id: str, now: datetime) -> Dict[str, Any]:
        """
        Dashboard summary for a user

        Returns:
            {
                'user_id': str,
                'level': {...calculate_level_from_xp()},
                'streak': {...get_streak_stats()},
                'achievements': {...get_achievement_stats()},
                'character': {'age': str, 'next_age': str or None, 'next_age_level': int or None}
            }
        """
        progression = await self.store.load_progression(user_id)
        if progression is None:
            progression = UserProgression.new(user_id)

        upcoming = next_age(progression.level)
        return {
            "user_id": user_id,
            "level": calculate_level_from_xp(progression.lifetime_xp),
            "streak": get_streak_stats(progression, now),
            "achievements": await self.achievements.get_achievement_stats(user_id),
            "character": {
                "age": age_for_level(progression.level).key,
                "next_age": upcoming.key if upcoming else None,
                "next_age_level": upcoming.min_level if upcoming else None,
            },
        }
