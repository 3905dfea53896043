"""Unit tests for pydantic models"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from quest_engine.models.achievement import AchievementRarity
from quest_engine.models.character import CharacterAge
from quest_engine.models.completion import TaskPriority
from quest_engine.models.progression import UserProgression


class TestUserProgression:
    """Test progression invariants"""

    def test_new_defaults(self):
        progression = UserProgression.new("alice")
        assert progression.level == 1
        assert progression.current_xp == 0
        assert progression.lifetime_xp == 0
        assert progression.current_streak == 0
        assert progression.longest_streak == 0
        assert progression.last_completion_date is None

    def test_blank_user_id_rejected(self):
        with pytest.raises(ValidationError):
            UserProgression(user_id="  ")

    @pytest.mark.parametrize("field,value", [
        ("current_xp", -1),
        ("lifetime_xp", -1),
        ("level", 0),
        ("current_streak", -1),
    ])
    def test_negative_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            UserProgression(user_id="alice", **{field: value})

    def test_longest_must_cover_current(self):
        with pytest.raises(ValidationError):
            UserProgression(user_id="alice", current_streak=5, longest_streak=3)

    def test_frozen(self):
        progression = UserProgression.new("alice")
        with pytest.raises(ValidationError):
            progression.level = 2

    def test_evolve_returns_new_instance(self):
        progression = UserProgression.new("alice")
        updated = progression.evolve(current_streak=2, longest_streak=2)
        assert updated is not progression
        assert updated.current_streak == 2
        assert progression.current_streak == 0

    def test_evolve_revalidates(self):
        progression = UserProgression.new("alice")
        with pytest.raises(ValidationError):
            progression.evolve(current_streak=4)

    def test_evolve_keeps_timestamps(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        progression = UserProgression.new("alice", now)
        assert progression.evolve(level=2).created_at == now


class TestTaskPriority:
    """Test VTODO priority mapping"""

    @pytest.mark.parametrize("value,expected", [
        (1, TaskPriority.HIGH),
        (3, TaskPriority.HIGH),
        (4, TaskPriority.MEDIUM),
        (5, TaskPriority.MEDIUM),
        (6, TaskPriority.MEDIUM),
        (7, TaskPriority.LOW),
        (9, TaskPriority.LOW),
        (0, TaskPriority.MEDIUM),
        (None, TaskPriority.MEDIUM),
    ])
    def test_from_caldav(self, value, expected):
        assert TaskPriority.from_caldav(value) == expected


def test_rarity_points():
    assert AchievementRarity.COMMON.points == 10
    assert AchievementRarity.MYTHIC.points == 250


def test_character_age_contains():
    age = CharacterAge(key="modern", name="Modern Age", min_level=60, max_level=74)
    assert age.contains(60) and age.contains(74)
    assert not age.contains(75)
    assert CharacterAge(key="space", name="Space Age", min_level=100).contains(500)
