"""
Streak Maintenance Job

Periodic job that decays expired streaks and selects users to remind about
streaks that are about to expire. Meant to run from cron or any scheduler,
typically hourly so reminders land inside the warning window.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from quest_engine import config
from quest_engine.gamification.notifications import build_streak_reminder_notifications
from quest_engine.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


class StreakMaintenanceJob:
    """
    Runs the decay sweep followed by reminder selection.
    """

    def __init__(self, progression_service, warning_hours: Optional[int] = None):
        self.progression_service = progression_service
        self.warning_hours = warning_hours if warning_hours is not None else config.STREAK_WARNING_HOURS

    async def run(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Execute one maintenance pass.

        Returns:
            {
                'streaks_reset': int,
                'reminders': list[NotificationIntent]
            }
        """
        now = now or now_utc()
        logger.info(f"Starting streak maintenance at {now.isoformat()}")

        reset_count = await self.progression_service.update_streak_maintenance(now)
        reminders = await self.progression_service.get_streak_reminders(now, self.warning_hours)
        notifications = build_streak_reminder_notifications(reminders)

        logger.info(
            f"Streak maintenance finished: {reset_count} reset, "
            f"{len(notifications)} reminder(s) to send"
        )
        return {"streaks_reset": reset_count, "reminders": notifications}
