"""
In-memory progression store

Implements ProgressionStore with plain dicts. Suitable for tests, demos and
single-process deployments where losing state on restart is acceptable.
"""

import asyncio
from datetime import date, datetime
from typing import Collection, Dict, List, Optional, Set, Tuple
import logging

from quest_engine.models.achievement import AchievementUnlock
from quest_engine.models.completion import HistoryEntry
from quest_engine.models.progression import UserProgression
from quest_engine.utils.datetime_helpers import local_date

logger = logging.getLogger(__name__)


class InMemoryProgressionStore:
    """Dict-backed store; unlocks are keyed by (user_id, achievement_key)"""

    def __init__(self):
        self._progressions: Dict[str, UserProgression] = {}
        self._history: Dict[str, List[HistoryEntry]] = {}
        self._unlocks: Dict[Tuple[str, str], AchievementUnlock] = {}
        self._lock = asyncio.Lock()
        logger.debug("InMemoryProgressionStore initialized (state is NOT persisted)")

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    async def load_progression(self, user_id: str) -> Optional[UserProgression]:
        return self._progressions.get(user_id)

    async def save_progression(self, progression: UserProgression) -> None:
        async with self._lock:
            self._progressions[progression.user_id] = progression
        logger.debug(f"Saved progression for user {progression.user_id}")

    async def list_progressions(self) -> List[UserProgression]:
        return list(self._progressions.values())

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def append_history(self, entry: HistoryEntry) -> None:
        async with self._lock:
            self._history.setdefault(entry.user_id, []).append(entry)

    async def list_history(self, user_id: str, since: Optional[datetime] = None) -> List[HistoryEntry]:
        entries = list(self._history.get(user_id, []))
        if since is not None:
            entries = [e for e in entries if e.completed_at >= since]
        return entries

    async def users_with_completion_on(self, day: date, reference: Optional[datetime] = None) -> Set[str]:
        return {
            user_id
            for user_id, entries in self._history.items()
            if any(local_date(e.completed_at, reference) == day for e in entries)
        }

    # ------------------------------------------------------------------
    # Achievement unlocks
    # ------------------------------------------------------------------

    async def load_unlocked_keys(self, user_id: str) -> Set[str]:
        return {u.achievement_key for u in self._unlocks.values() if u.user_id == user_id}

    async def insert_unlock(self, unlock: AchievementUnlock) -> bool:
        key = (unlock.user_id, unlock.achievement_key)
        async with self._lock:
            if key in self._unlocks:
                return False
            self._unlocks[key] = unlock.model_copy()
        return True

    async def list_unlocks(self, user_id: str) -> List[AchievementUnlock]:
        return [u.model_copy() for u in self._unlocks.values() if u.user_id == user_id]

    async def mark_notified(self, user_id: str, keys: Optional[Collection[str]] = None) -> int:
        count = 0
        async with self._lock:
            for stored_key, unlock in self._unlocks.items():
                if unlock.user_id != user_id or unlock.notified:
                    continue
                if keys is not None and unlock.achievement_key not in keys:
                    continue
                self._unlocks[stored_key] = unlock.model_copy(update={"notified": True})
                count += 1
        return count
