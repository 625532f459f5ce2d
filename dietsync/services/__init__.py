"""Services module."""

from .sync_engine import SyncEngine, SyncSession
from .streaks import apply_meal_log, advance_streak, total_calories_for_day
from .meal_logger import MealLogger
from .goal_tracker import GoalTracker
from .scheduler import SyncPoller

__all__ = [
    "SyncEngine",
    "SyncSession",
    "apply_meal_log",
    "advance_streak",
    "total_calories_for_day",
    "MealLogger",
    "GoalTracker",
    "SyncPoller",
]
