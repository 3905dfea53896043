"""
Daily Streak Tracking System

A streak counts consecutive calendar days with at least one completed task.

States (derived, never stored):
- NO_HISTORY: user has never completed a task
- ACTIVE_TODAY: a completion already landed on today's calendar day
- GRACE_PERIOD: last completion was yesterday; streak survives until 23:59:59 today
- BROKEN: grace period elapsed without a completion

Features:
- Same-day re-completions never inflate the streak
- Grace period until end of the day after the last completion (inclusive)
- Best streak tracking
- Proactive decay sweep and expiry reminders
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Collection, Dict, Iterable, List, Optional
import logging

from quest_engine.models.completion import StreakReminder, StreakUpdate
from quest_engine.models.progression import UserProgression
from quest_engine.utils.datetime_helpers import align_to, days_between, end_of_next_day

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 30, 60, 90, 100, 365, 500, 1000)


class StreakState(str, Enum):
    NO_HISTORY = "no_history"
    ACTIVE_TODAY = "active_today"
    GRACE_PERIOD = "grace_period"
    BROKEN = "broken"


def _in_deadline_frame(last_completion: datetime, reference: Optional[datetime]) -> datetime:
    # Aware completions keep their own zone
    if reference is None or (last_completion.tzinfo is not None and reference.tzinfo is not None):
        return last_completion
    return align_to(last_completion, reference)


def grace_period_end(last_completion: datetime, reference: Optional[datetime] = None) -> datetime:
    """
    End of the grace window: 23:59:59 on the day after last_completion

    The day is read in last_completion's own timezone when it is aware, so a
    sweep running in UTC sees the same deadline as the user.

    Args:
        last_completion: Most recent completion
        reference: Only consulted when one side is naive; the naive side is
            read in the other's timezone
    """
    return end_of_next_day(_in_deadline_frame(last_completion, reference))


def is_within_grace_period(last_completion: datetime, now: datetime) -> bool:
    """
    True if now falls in [last_completion, next day 23:59:59]

    Aware values are compared as instants. Compared at whole-second precision
    so 23:59:59.5 still counts.
    """
    last = _in_deadline_frame(last_completion, now).replace(microsecond=0)
    end = end_of_next_day(last)
    return last <= now.replace(microsecond=0) <= end


def _completed_today(progression: UserProgression, now: datetime) -> bool:
    if progression.last_completion_date is None:
        return False
    return days_between(progression.last_completion_date, now) == 0


def is_streak_milestone(streak: int) -> bool:
    return streak in STREAK_MILESTONES


def update_streak(progression: UserProgression, now: datetime) -> StreakUpdate:
    """
    Apply a completion at `now` to the streak state machine

    Logic:
    - No prior completion: streak = 1
    - Same calendar day: unchanged
    - Next calendar day: streak + 1
    - 2+ days: preserved if still inside the grace window, else reset to 1 (broken)
    - longest_streak = max(longest_streak, current_streak)

    A completion stamped before the stored last completion counts as a
    same-day re-completion and does not move last_completion_date back.

    Returns:
        StreakUpdate(progression, streak_broken, previous_streak)
    """
    previous = progression.current_streak
    last = progression.last_completion_date
    broken = False
    new_last = now

    if last is None:
        new_streak = 1
    else:
        days_diff = days_between(last, now)

        if days_diff <= 0:
            new_streak = max(previous, 1)
            if days_diff < 0 or align_to(last, now) > now:
                new_last = last
        elif days_diff == 1:
            new_streak = previous + 1
        elif is_within_grace_period(last, now):
            new_streak = max(previous, 1)
        else:
            new_streak = 1
            broken = previous > 0

    updated = progression.evolve(
        current_streak=new_streak,
        longest_streak=max(progression.longest_streak, new_streak),
        last_completion_date=new_last,
    )

    if broken:
        logger.info(f"Streak broken for user {progression.user_id}: {previous} → 1 days")
    elif new_streak != previous:
        logger.info(f"Updated streak for user {progression.user_id}: {previous} → {new_streak} days")

    return StreakUpdate(progression=updated, streak_broken=broken, previous_streak=previous)


def get_streak_state(progression: UserProgression, now: datetime) -> StreakState:
    """Derive the conceptual streak state at `now`"""
    last = progression.last_completion_date
    if last is None:
        return StreakState.NO_HISTORY
    if _completed_today(progression, now):
        return StreakState.ACTIVE_TODAY
    if progression.current_streak > 0 and is_within_grace_period(last, now):
        return StreakState.GRACE_PERIOD
    return StreakState.BROKEN


def detect_broken_streaks(
    progressions: Iterable[UserProgression],
    now: datetime,
    completed_today: Collection[str] = ()
) -> List[str]:
    """
    Users whose streak should decay to 0

    A streak decays when it is > 0, its grace period has elapsed and the
    user has no completion today.

    Args:
        progressions: All known progressions
        now: Evaluation moment
        completed_today: Users the history shows as having completed today

    Returns:
        user_ids to reset
    """
    to_reset = []
    for progression in progressions:
        if progression.current_streak <= 0 or progression.last_completion_date is None:
            continue
        if progression.user_id in completed_today or _completed_today(progression, now):
            continue
        if not is_within_grace_period(progression.last_completion_date, now):
            to_reset.append(progression.user_id)
    return to_reset


def users_with_expiring_streaks(
    progressions: Iterable[UserProgression],
    now: datetime,
    warn_hours: int,
    completed_today: Collection[str] = ()
) -> List[StreakReminder]:
    """
    Users within warn_hours of their grace-period deadline who haven't completed today

    Selection: deadline - warn_hours <= now < deadline
    """
    reminders = []
    for progression in progressions:
        if progression.current_streak <= 0 or progression.last_completion_date is None:
            continue
        if progression.user_id in completed_today or _completed_today(progression, now):
            continue

        deadline = grace_period_end(progression.last_completion_date, now)
        if deadline - timedelta(hours=warn_hours) <= now < deadline:
            reminders.append(StreakReminder(
                user_id=progression.user_id,
                current_streak=progression.current_streak,
                expires_at=deadline,
            ))
    return reminders


def get_streak_stats(progression: UserProgression, now: datetime) -> Dict[str, Any]:
    """
    Streak summary for display

    Returns:
        {
            'current_streak': int,
            'longest_streak': int,
            'last_completion': datetime or None,
            'is_active_today': bool,
            'state': str,
            'grace_period_ends': datetime or None (only while the streak is alive)
        }
    """
    state = get_streak_state(progression, now)
    grace_ends = None
    if state in (StreakState.ACTIVE_TODAY, StreakState.GRACE_PERIOD):
        grace_ends = grace_period_end(progression.last_completion_date, now)

    return {
        "current_streak": progression.current_streak,
        "longest_streak": progression.longest_streak,
        "last_completion": progression.last_completion_date,
        "is_active_today": state == StreakState.ACTIVE_TODAY,
        "state": state.value,
        "grace_period_ends": grace_ends,
    }
