"""Task completion, history and result models"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from quest_engine.models.progression import UserProgression


class TaskPriority(str, Enum):
    """Task priority buckets used for XP awards"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_caldav(cls, value: Optional[int]) -> 'TaskPriority':
        """
        Map a VTODO PRIORITY (0-9) to a bucket.

        1-3 is high, 7-9 is low; 4-6 and 0 (undefined) are medium.
        """
        if value is None:
            return cls.MEDIUM
        if 1 <= value <= 3:
            return cls.HIGH
        if 7 <= value <= 9:
            return cls.LOW
        return cls.MEDIUM


class TaskInfo(BaseModel):
    """Task as resolved by the task source"""
    task_id: str
    title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    completed: bool = False


class CompletionEvent(BaseModel):
    """A task completion reported by the task-tracking collaborator"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    task_id: str
    task_title: str
    priority: TaskPriority = TaskPriority.MEDIUM
    completed_at: datetime


class HistoryEntry(BaseModel):
    """Append-only audit record of an awarded completion"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    task_id: str
    task_title: str
    xp_earned: int = Field(ge=0)
    completed_at: datetime
    priority: Optional[TaskPriority] = None


class HistoryAggregate(BaseModel):
    """Read-only statistics snapshot that achievement rules are evaluated against"""
    model_config = ConfigDict(frozen=True)

    total_tasks_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    level: int = 1
    lifetime_xp: int = 0
    tasks_completed_today: int = 0
    tasks_completed_this_week: int = 0
    tasks_completed_last_hour: int = 0
    xp_earned_today: int = 0
    high_priority_completed: int = 0
    completions_by_hour_of_day: dict[int, int] = Field(default_factory=dict)
    weekdays_completed_this_week: frozenset[int] = Field(default_factory=frozenset)  # 0=Monday
    perfect_day_flag: Optional[bool] = None  # None: pending count unknown
    as_of: Optional[datetime] = None


class StreakUpdate(BaseModel):
    """Outcome of applying a completion to the streak state machine"""
    progression: UserProgression
    streak_broken: bool = False
    previous_streak: int = 0


class XpAward(BaseModel):
    """Outcome of awarding XP"""
    progression: UserProgression
    amount: int
    leveled_up: bool
    old_level: int
    new_level: int


class StreakInfo(BaseModel):
    """Streak summary returned to callers"""
    current: int
    longest: int
    previous: int
    broken: bool = False
    milestone_reached: Optional[int] = None


class CompletionResult(BaseModel):
    """Consolidated result of processing one completion"""
    user_id: str
    task_id: str
    xp_awarded: int
    lifetime_xp: int
    leveled_up: bool
    old_level: int
    new_level: int
    rank_title: str
    streak_info: StreakInfo
    new_achievements: list[str] = Field(default_factory=list)
    achievement_check_failed: bool = False
    age_reached: Optional[str] = None
    unlocked_items: list[str] = Field(default_factory=list)


class StreakReminder(BaseModel):
    """A user whose streak expires soon"""
    user_id: str
    current_streak: int
    expires_at: datetime
