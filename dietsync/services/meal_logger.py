"""Logging meals through the sync engine."""

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dietsync.config import get_settings
from dietsync.models.bundle import MealLogResult
from dietsync.models.meal import Meal, MealCreate
from dietsync.services.streaks import apply_meal_log
from dietsync.services.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class MealLogger:
    """Append a meal, move the streak, and persist whatever changed."""

    def __init__(self, engine: SyncEngine, tz: Optional[ZoneInfo] = None):
        self.engine = engine
        self.tz = tz or ZoneInfo(get_settings().timezone)

    async def log_meal(
        self,
        user_id: str,
        data: MealCreate,
        today: Optional[date] = None,
    ) -> MealLogResult:
        """Log a meal for a user.

        Keys are persisted one at a time, meals first, so a failure stops
        before the streak is touched. The SyncError from the failing key is
        raised after that key has been rolled back.
        """
        bundle = self.engine.bundle(user_id)
        meal = Meal.from_create(data, now=datetime.now(self.tz))
        result = apply_meal_log(bundle, meal, today=today, tz=self.tz)

        for key in result.changed_keys:
            await self.engine.update(user_id, key, result.bundle.get(key))

        if result.goal_achieved:
            logger.info(
                f"User {user_id} reached a {result.bundle.streak.current_streak} day streak goal"
            )
        return result
