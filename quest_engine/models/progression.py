"""User progression models"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class UserProgression(BaseModel):
    """
    Per-user progression state.

    Immutable: every rule returns a new instance via evolve(), which
    re-runs validation (model_copy(update=...) would skip it).
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    current_xp: int = Field(default=0, ge=0)  # XP earned inside the current level
    lifetime_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_completion_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """Ensure user_id is not blank"""
        if not v or not v.strip():
            raise ValueError("user_id must be a non-empty string")
        return v

    @model_validator(mode='after')
    def validate_streaks(self) -> 'UserProgression':
        """Longest streak can never trail the current one"""
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) must be >= "
                f"current_streak ({self.current_streak})"
            )
        return self

    @classmethod
    def new(cls, user_id: str, now: Optional[datetime] = None) -> 'UserProgression':
        """Default state for a user's first completion"""
        return cls(user_id=user_id, created_at=now, updated_at=now)

    def evolve(self, **changes: Any) -> 'UserProgression':
        """Return a validated copy with the given fields replaced"""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)
