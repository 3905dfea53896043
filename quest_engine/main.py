"""Streak maintenance entry point (run from cron)"""
import asyncio
import logging

from quest_engine.config import LOG_LEVEL, validate_config
from quest_engine.db.memory_store import InMemoryProgressionStore
from quest_engine.scheduler.streak_maintenance import StreakMaintenanceJob
from quest_engine.services.container import get_container, init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


async def main() -> None:
    """Run one streak maintenance pass against the configured container"""
    try:
        logger.info("Validating configuration...")
        validate_config()

        container = get_container()
        job = StreakMaintenanceJob(container.progression_service)
        result = await job.run()

        for notification in result["reminders"]:
            logger.info(f"Reminder for user {notification.user_id}: {notification.message}")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    # Standalone runs use the in-memory store; deployments call init_container()
    # with their own store before main().
    init_container(store=InMemoryProgressionStore())
    asyncio.run(main())
