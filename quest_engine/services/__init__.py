"""
Service Layer Package

- ProgressionService: completion processing, streak maintenance, reminders
- ServiceContainer: wiring of store, task source and services
- TaskSource / ProgressionStore: collaborator protocols
"""

from quest_engine.services.container import ServiceContainer, get_container, init_container
from quest_engine.services.interfaces import ProgressionStore, TaskSource
from quest_engine.services.progression_service import ProgressionService, UserLockRegistry

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "ProgressionStore",
    "TaskSource",
    "ProgressionService",
    "UserLockRegistry",
]
