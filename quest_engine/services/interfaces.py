"""
Collaborator contracts

The engine talks to the outside world only through these protocols. Any
object with matching async methods works (database, API client, in-memory).
"""

from datetime import date, datetime
from typing import Collection, Iterable, List, Optional, Protocol, Set

from quest_engine.models.achievement import AchievementUnlock
from quest_engine.models.completion import HistoryEntry, TaskInfo
from quest_engine.models.progression import UserProgression


class TaskSource(Protocol):
    """Where tasks live (calendar store, file list, API...)"""

    async def get_task(self, task_id: str, user_id: str) -> Optional[TaskInfo]:
        """Resolve a task, or None if it doesn't exist"""
        ...

    async def get_pending_task_count(self, user_id: str) -> int:
        """Tasks still open for the user today"""
        ...


class ProgressionStore(Protocol):
    """
    Persistence for progression, history and unlocks.

    Implementations raise ConnectionError/TimeoutError/OSError (or
    PersistenceUnavailableError) when storage can't be reached.
    """

    async def load_progression(self, user_id: str) -> Optional[UserProgression]:
        """Stored progression, or None for a user without one"""
        ...

    async def save_progression(self, progression: UserProgression) -> None:
        ...

    async def list_progressions(self) -> Iterable[UserProgression]:
        ...

    async def append_history(self, entry: HistoryEntry) -> None:
        ...

    async def list_history(self, user_id: str, since: Optional[datetime] = None) -> List[HistoryEntry]:
        ...

    async def users_with_completion_on(self, day: date, reference: Optional[datetime] = None) -> Set[str]:
        """Users with at least one history entry on a calendar day, read in reference's timezone"""
        ...

    async def load_unlocked_keys(self, user_id: str) -> Set[str]:
        ...

    async def insert_unlock(self, unlock: AchievementUnlock) -> bool:
        """Insert if (user_id, achievement_key) is new; False if it already existed"""
        ...

    async def list_unlocks(self, user_id: str) -> List[AchievementUnlock]:
        ...

    async def mark_notified(self, user_id: str, keys: Optional[Collection[str]] = None) -> int:
        """Flag unlocks as notified, returning how many changed"""
        ...
