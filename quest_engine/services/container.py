"""
Service Container - Dependency Injection Container

Holds the collaborators (store, task source) and builds services on first
access. Assembled once at process startup via init_container().
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Collaborators (store, task_source) are injected.
    """

    # Collaborators (injected)
    store: object  # ProgressionStore implementation
    task_source: Optional[object] = None  # TaskSource (optional, maintenance-only processes don't need it)

    # Services (lazy-loaded via properties)
    _achievement_service: Optional[object] = field(default=None, init=False, repr=False)
    _progression_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def achievement_service(self):
        """Get AchievementService instance (lazy-loaded)"""
        if self._achievement_service is None:
            from quest_engine.gamification.achievement_system import AchievementService
            self._achievement_service = AchievementService(self.store)
            logger.debug("AchievementService instantiated")
        return self._achievement_service

    @property
    def progression_service(self):
        """Get ProgressionService instance (lazy-loaded)"""
        if self._progression_service is None:
            from quest_engine.services.progression_service import ProgressionService
            self._progression_service = ProgressionService(
                self.store,
                self.task_source,
                achievements=self.achievement_service
            )
            logger.debug("ProgressionService instantiated")
        return self._progression_service


# Global container instance (initialized at startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(store: object, task_source: Optional[object] = None) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: ProgressionStore implementation
        task_source: TaskSource implementation (required for process_completion)

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store, task_source=task_source)

    logger.info("Service container initialized")
    return _container
