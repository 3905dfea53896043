"""Global test fixtures and utilities for quest-engine tests"""
import pytest
from datetime import datetime, timezone
from typing import Dict, Optional

from quest_engine.db.memory_store import InMemoryProgressionStore
from quest_engine.gamification.achievement_system import AchievementService
from quest_engine.models.completion import CompletionEvent, TaskInfo, TaskPriority
from quest_engine.models.progression import UserProgression
from quest_engine.services.progression_service import ProgressionService


# ============================================================================
# Collaborator Fakes
# ============================================================================

class FakeTaskSource:
    """TaskSource backed by a dict; unknown ids resolve to None"""

    def __init__(self, pending_count: int = 3):
        self.tasks: Dict[str, TaskInfo] = {}
        self.pending_count = pending_count

    def add(self, task_id: str, title: str = "Task", priority: TaskPriority = TaskPriority.MEDIUM) -> TaskInfo:
        task = TaskInfo(task_id=task_id, title=title, priority=priority, completed=True)
        self.tasks[task_id] = task
        return task

    async def get_task(self, task_id: str, user_id: str) -> Optional[TaskInfo]:
        return self.tasks.get(task_id)

    async def get_pending_task_count(self, user_id: str) -> int:
        return self.pending_count


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory progression store"""
    return InMemoryProgressionStore()


@pytest.fixture
def task_source():
    """Task source with a few known tasks"""
    source = FakeTaskSource()
    source.add("task-high", "Ship release", TaskPriority.HIGH)
    source.add("task-medium", "Review PR", TaskPriority.MEDIUM)
    source.add("task-low", "Water plants", TaskPriority.LOW)
    return source


@pytest.fixture
def achievement_service(store):
    return AchievementService(store)


@pytest.fixture
def progression_service(store, task_source, achievement_service):
    return ProgressionService(store, task_source, achievements=achievement_service)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def new_progression(test_user_id):
    return UserProgression.new(test_user_id)


def make_event(
    user_id: str = "user-123",
    task_id: str = "task-medium",
    priority: TaskPriority = TaskPriority.MEDIUM,
    completed_at: Optional[datetime] = None,
    title: str = "Review PR",
) -> CompletionEvent:
    """Build a completion event (defaults to 2024-06-01 09:00 UTC)"""
    return CompletionEvent(
        user_id=user_id,
        task_id=task_id,
        task_title=title,
        priority=priority,
        completed_at=completed_at or datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def event_factory():
    """Factory for CompletionEvent instances"""
    return make_event
