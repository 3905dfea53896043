"""Achievement models for gamification"""
from datetime import datetime
from enum import Enum
from typing import Callable, Optional
from pydantic import BaseModel, ConfigDict, Field

from quest_engine.models.completion import HistoryAggregate


class AchievementCategory(str, Enum):
    """Achievement categories"""
    TASK_MASTER = "task_master"
    STREAK_KEEPER = "streak_keeper"
    LEVEL_CHAMPION = "level_champion"
    TIME_MASTER = "time_master"
    SPEED_DEMON = "speed_demon"
    CONSISTENCY = "consistency"
    SPECIAL_DATES = "special_dates"
    XP_LEGENDS = "xp_legends"
    PRIORITY = "priority"
    CURIOSITIES = "curiosities"


class AchievementRarity(str, Enum):
    """Achievement rarity, which determines point value"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"

    @property
    def points(self) -> int:
        return RARITY_POINTS[self]


RARITY_POINTS = {
    AchievementRarity.COMMON: 10,
    AchievementRarity.RARE: 25,
    AchievementRarity.EPIC: 50,
    AchievementRarity.LEGENDARY: 100,
    AchievementRarity.MYTHIC: 250,
}


class AchievementStatus(str, Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in_progress"
    UNLOCKED = "unlocked"


class AchievementDefinition(BaseModel):
    """Catalog entry: a named predicate over a HistoryAggregate"""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str
    icon: str = "🏆"
    category: AchievementCategory
    rarity: AchievementRarity = AchievementRarity.COMMON
    # Aggregate attribute tracked for progress display (milestone achievements only)
    progress_metric: Optional[str] = None
    milestone: Optional[int] = None
    predicate: Callable[[HistoryAggregate], bool] = Field(exclude=True, repr=False)

    @property
    def points(self) -> int:
        return self.rarity.points

    def is_met(self, aggregate: HistoryAggregate) -> bool:
        return bool(self.predicate(aggregate))


class AchievementUnlock(BaseModel):
    """User's unlocked achievement (unique per user + key)"""
    user_id: str
    achievement_key: str
    unlocked_at: datetime
    notified: bool = False


class AchievementProgress(BaseModel):
    """Progress toward a milestone achievement"""
    achievement_key: str
    current: int
    required: int
    percentage: float
    status: AchievementStatus
