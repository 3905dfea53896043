"""Unit tests for Achievement System (quest_engine/gamification/achievement_system.py)"""
import pytest
from unittest.mock import AsyncMock
from datetime import datetime, timezone, timedelta

from quest_engine.exceptions import AchievementUnlockError, AggregateFetchError, ValidationError
from quest_engine.gamification.achievement_catalog import ACHIEVEMENTS
from quest_engine.gamification.achievement_system import (
    build_history_aggregate,
    calculate_achievement_progress,
    evaluate_achievements,
)
from quest_engine.models.achievement import AchievementStatus
from quest_engine.models.completion import HistoryAggregate, HistoryEntry, TaskPriority
from quest_engine.models.progression import UserProgression


NOW = datetime(2024, 6, 5, 14, 0, tzinfo=timezone.utc)  # Wednesday


def entry(completed_at: datetime, xp: int = 15, priority: TaskPriority = TaskPriority.MEDIUM) -> HistoryEntry:
    return HistoryEntry(
        user_id="u1",
        task_id="t",
        task_title="Task",
        xp_earned=xp,
        completed_at=completed_at,
        priority=priority,
    )


# ============================================================================
# Catalog Tests
# ============================================================================

def test_catalog_order_starts_with_task_milestones():
    keys = list(ACHIEVEMENTS)
    assert keys[0] == "first_task"
    assert keys.index("tasks_10") < keys.index("streak_3") < keys.index("level_5")


def test_catalog_rarity_points():
    assert ACHIEVEMENTS["first_task"].points == 10
    assert ACHIEVEMENTS["tasks_100"].points == 25
    assert ACHIEVEMENTS["tasks_500"].points == 50
    assert ACHIEVEMENTS["tasks_2500"].points == 100
    assert ACHIEVEMENTS["tasks_10000"].points == 250


# ============================================================================
# Predicate Evaluation Tests
# ============================================================================

def test_evaluate_first_task():
    aggregate = HistoryAggregate(total_tasks_completed=1, current_streak=1, longest_streak=1)
    assert evaluate_achievements(aggregate, set()) == ["first_task"]


def test_evaluate_skips_unlocked():
    aggregate = HistoryAggregate(total_tasks_completed=10)
    assert evaluate_achievements(aggregate, {"first_task"}) == ["tasks_10"]


def test_evaluate_returns_catalog_order():
    """Unrelated predicates are evaluated independently, results in catalog order"""
    aggregate = HistoryAggregate(
        total_tasks_completed=12,
        current_streak=3,
        longest_streak=3,
        level=5,
        tasks_completed_today=12,
        completions_by_hour_of_day={7: 1, 22: 2},
    )

    result = evaluate_achievements(aggregate, set())

    assert result == [
        "first_task", "tasks_10",
        "streak_3",
        "level_5",
        "early_bird", "night_owl",
        "daily_dozen",
    ]


@pytest.mark.parametrize("hour,expected", [
    (0, {"early_bird", "dawn_raider", "midnight_warrior"}),
    (5, {"early_bird", "dawn_raider"}),
    (8, {"early_bird"}),
    (9, set()),
    (20, set()),
    (21, {"night_owl"}),
])
def test_time_of_day_achievements(hour, expected):
    aggregate = HistoryAggregate(completions_by_hour_of_day={hour: 1})
    time_keys = {"early_bird", "dawn_raider", "night_owl", "midnight_warrior"}
    assert set(evaluate_achievements(aggregate, set())) & time_keys == expected


def test_streak_achievements_use_longest_streak():
    """A broken streak doesn't hide an earned streak achievement"""
    aggregate = HistoryAggregate(current_streak=1, longest_streak=7)
    result = evaluate_achievements(aggregate, set())
    assert "streak_3" in result and "streak_7" in result


def test_weekly_warrior_needs_live_streak():
    """Unlike streak_7, weekly_warrior reads the current streak"""
    broken = HistoryAggregate(current_streak=1, longest_streak=7)
    live = HistoryAggregate(current_streak=7, longest_streak=7)
    assert "weekly_warrior" not in evaluate_achievements(broken, set())
    assert "weekly_warrior" in evaluate_achievements(live, set())


def test_perfect_day_requires_known_flag():
    assert "perfect_day" not in evaluate_achievements(HistoryAggregate(perfect_day_flag=None), set())
    assert "perfect_day" in evaluate_achievements(HistoryAggregate(perfect_day_flag=True), set())


def test_weekend_warrior_needs_both_days():
    saturday_only = HistoryAggregate(weekdays_completed_this_week=frozenset({5}))
    both = HistoryAggregate(weekdays_completed_this_week=frozenset({5, 6}))
    assert "weekend_warrior" not in evaluate_achievements(saturday_only, set())
    assert "weekend_warrior" in evaluate_achievements(both, set())


@pytest.mark.parametrize("as_of,today,key", [
    (datetime(2025, 1, 1, 10), 1, "new_year_resolution"),
    (datetime(2024, 2, 29, 10), 1, "leap_day_legend"),
    (datetime(2024, 12, 21, 10), 1, "palindrome_day"),
    (datetime(2024, 9, 13, 10), 13, "friday_13th"),
])
def test_special_date_achievements(as_of, today, key):
    aggregate = HistoryAggregate(as_of=as_of, tasks_completed_today=today)
    assert key in evaluate_achievements(aggregate, set())


def test_friday_13th_needs_thirteen_tasks():
    aggregate = HistoryAggregate(as_of=datetime(2024, 9, 13, 10), tasks_completed_today=12)
    assert "friday_13th" not in evaluate_achievements(aggregate, set())


def test_exact_count_curiosities():
    assert "binary_master" in evaluate_achievements(HistoryAggregate(total_tasks_completed=1024), set())
    assert "binary_master" not in evaluate_achievements(HistoryAggregate(total_tasks_completed=1025), set())
    assert "perfect_score" in evaluate_achievements(HistoryAggregate(lifetime_xp=10_000), set())


# ============================================================================
# Aggregate Builder Tests
# ============================================================================

def test_build_history_aggregate_buckets():
    entries = [
        entry(NOW - timedelta(minutes=10), xp=25, priority=TaskPriority.HIGH),
        entry(NOW - timedelta(minutes=50)),
        entry(NOW - timedelta(hours=3)),                 # today, outside hour
        entry(NOW - timedelta(days=1)),                  # Tuesday
        entry(NOW - timedelta(days=4)),                  # previous Saturday (last week)
        entry(NOW + timedelta(hours=1)),                 # future, ignored
    ]
    progression = UserProgression(user_id="u1", lifetime_xp=400, level=3, current_xp=17,
                                  current_streak=2, longest_streak=5)

    aggregate = build_history_aggregate(entries, progression, NOW)

    assert aggregate.total_tasks_completed == 5
    assert aggregate.tasks_completed_today == 3
    assert aggregate.tasks_completed_last_hour == 2
    assert aggregate.tasks_completed_this_week == 4
    assert aggregate.xp_earned_today == 55
    assert aggregate.high_priority_completed == 1
    assert aggregate.weekdays_completed_this_week == frozenset({1, 2})
    assert aggregate.completions_by_hour_of_day[13] == 2
    assert aggregate.level == 3
    assert aggregate.longest_streak == 5
    assert aggregate.lifetime_xp == 400
    assert aggregate.as_of == NOW
    assert aggregate.perfect_day_flag is None


def test_build_history_aggregate_empty():
    aggregate = build_history_aggregate([], UserProgression.new("u1"), NOW)
    assert aggregate.total_tasks_completed == 0
    assert aggregate.completions_by_hour_of_day == {}


# ============================================================================
# Progress Tests
# ============================================================================

def test_progress_in_progress():
    progress = calculate_achievement_progress(ACHIEVEMENTS["tasks_50"], HistoryAggregate(total_tasks_completed=20))
    assert progress.current == 20
    assert progress.required == 50
    assert progress.percentage == 40.0
    assert progress.status == AchievementStatus.IN_PROGRESS


def test_progress_capped_and_unlocked():
    progress = calculate_achievement_progress(
        ACHIEVEMENTS["tasks_10"], HistoryAggregate(total_tasks_completed=30), unlocked=True
    )
    assert progress.current == 10
    assert progress.percentage == 100.0
    assert progress.status == AchievementStatus.UNLOCKED


def test_progress_none_for_special():
    assert calculate_achievement_progress(ACHIEVEMENTS["night_owl"], HistoryAggregate()) is None


# ============================================================================
# AchievementService Tests
# ============================================================================

@pytest.mark.asyncio
async def test_unlock_is_idempotent(achievement_service, store):
    """Second unlock of the same key is a no-op"""
    first = await achievement_service.unlock_achievement("u1", "first_task", NOW)
    second = await achievement_service.unlock_achievement("u1", "first_task", NOW)

    assert first is not None
    assert first.achievement_key == "first_task"
    assert first.notified is False
    assert second is None
    assert len(await store.list_unlocks("u1")) == 1


@pytest.mark.asyncio
async def test_unlock_unknown_key_raises(achievement_service):
    with pytest.raises(ValidationError):
        await achievement_service.unlock_achievement("u1", "does_not_exist", NOW)


@pytest.mark.asyncio
async def test_check_achievements_unlocks_new_only(achievement_service, store):
    progression = UserProgression(user_id="u1", current_streak=3, longest_streak=3)
    aggregate = HistoryAggregate(total_tasks_completed=10, current_streak=3, longest_streak=3)
    await achievement_service.unlock_achievement("u1", "first_task", NOW)

    result = await achievement_service.check_achievements("u1", progression, aggregate, NOW)

    assert result == ["tasks_10", "streak_3"]
    assert await store.load_unlocked_keys("u1") == {"first_task", "tasks_10", "streak_3"}

    again = await achievement_service.check_achievements("u1", progression, aggregate, NOW)
    assert again == []


@pytest.mark.asyncio
async def test_check_achievements_fetches_aggregate_when_missing(achievement_service, store):
    await store.append_history(entry(NOW - timedelta(minutes=5)))
    progression = UserProgression(user_id="u1", current_streak=1, longest_streak=1)

    result = await achievement_service.check_achievements("u1", progression, None, NOW)

    assert result == ["first_task"]


@pytest.mark.asyncio
async def test_fetch_failure_unlocks_nothing(achievement_service, store):
    """History read failure fails closed and propagates"""
    store.list_history = AsyncMock(side_effect=ConnectionError("db down"))
    store.insert_unlock = AsyncMock()
    progression = UserProgression(user_id="u1", current_streak=1, longest_streak=1)

    with pytest.raises(AggregateFetchError):
        await achievement_service.check_achievements("u1", progression, None, NOW)

    store.insert_unlock.assert_not_called()


@pytest.mark.asyncio
async def test_insert_failure_keeps_other_unlocks(achievement_service, store):
    """A failed insert doesn't stop the remaining candidates"""
    progression = UserProgression(user_id="u1", current_streak=3, longest_streak=3)
    aggregate = HistoryAggregate(total_tasks_completed=10, current_streak=3, longest_streak=3)
    store.insert_unlock = AsyncMock(side_effect=[True, ConnectionError("db down"), True])

    with pytest.raises(AchievementUnlockError) as exc_info:
        await achievement_service.check_achievements("u1", progression, aggregate, NOW)

    assert exc_info.value.unlocked_keys == ["first_task", "streak_3"]
    assert exc_info.value.failed_keys == ["tasks_10"]
    assert store.insert_unlock.call_count == 3


@pytest.mark.asyncio
async def test_unlocked_keys_failure_unlocks_nothing(achievement_service, store):
    store.load_unlocked_keys = AsyncMock(side_effect=TimeoutError())
    store.insert_unlock = AsyncMock()

    with pytest.raises(AggregateFetchError):
        await achievement_service.check_achievements(
            "u1", UserProgression.new("u1"), HistoryAggregate(total_tasks_completed=1), NOW
        )

    store.insert_unlock.assert_not_called()


@pytest.mark.asyncio
async def test_check_perfect_day(achievement_service):
    assert await achievement_service.check_perfect_day("u1", 2, NOW) is None
    assert await achievement_service.check_perfect_day("u1", 0, NOW) == "perfect_day"
    assert await achievement_service.check_perfect_day("u1", 0, NOW) is None


@pytest.mark.asyncio
async def test_get_all_achievements_statuses(achievement_service):
    await achievement_service.unlock_achievement("u1", "first_task", NOW)
    aggregate = HistoryAggregate(total_tasks_completed=5)

    achievements = {a["key"]: a for a in await achievement_service.get_all_achievements("u1", aggregate)}

    assert len(achievements) == len(ACHIEVEMENTS)
    assert achievements["first_task"]["status"] == "unlocked"
    assert achievements["first_task"]["unlocked_at"] == NOW
    assert achievements["tasks_10"]["status"] == "in_progress"
    assert achievements["tasks_10"]["progress"]["current"] == 5
    assert achievements["streak_3"]["status"] == "locked"
    assert achievements["night_owl"]["status"] == "locked"


@pytest.mark.asyncio
async def test_get_achievements_by_category(achievement_service):
    grouped = await achievement_service.get_achievements_by_category("u1")
    assert "task_master" in grouped
    assert all(a["category"] == "streak_keeper" for a in grouped["streak_keeper"])


@pytest.mark.asyncio
async def test_get_achievement_stats(achievement_service):
    await achievement_service.unlock_achievement("u1", "first_task", NOW)
    await achievement_service.unlock_achievement("u1", "tasks_100", NOW)

    stats = await achievement_service.get_achievement_stats("u1")

    assert stats["unlocked"] == 2
    assert stats["total"] == len(ACHIEVEMENTS)
    assert stats["points"] == 35
    assert stats["by_rarity"]["common"]["unlocked"] == 1
    assert stats["by_rarity"]["rare"]["unlocked"] == 1


@pytest.mark.asyncio
async def test_get_achievement_progress(achievement_service):
    progress = await achievement_service.get_achievement_progress(
        "u1", "streak_7", HistoryAggregate(longest_streak=2)
    )
    assert progress.current == 2
    assert progress.required == 7


@pytest.mark.asyncio
async def test_recent_and_mark_notified(achievement_service, store):
    await achievement_service.unlock_achievement("u1", "first_task", NOW - timedelta(days=1))
    await achievement_service.unlock_achievement("u1", "tasks_10", NOW)

    recent = await achievement_service.get_recent_achievements("u1", limit=1)
    assert [u.achievement_key for u in recent] == ["tasks_10"]

    assert await achievement_service.mark_achievements_notified("u1", ["first_task"]) == 1
    assert await achievement_service.mark_achievements_notified("u1") == 1
    assert await achievement_service.mark_achievements_notified("u1") == 0
    assert all(u.notified for u in await store.list_unlocks("u1"))
