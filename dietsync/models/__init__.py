"""Data models for Diet Sync."""

from .user import UserSettings
from .meal import Meal, MealCreate, MealType
from .tracking import Streak, DailyProgress
from .bundle import Bundle, MealLogResult, SyncKey, default_value, dump_value, parse_value

__all__ = [
    "UserSettings",
    "Meal",
    "MealCreate",
    "MealType",
    "Streak",
    "DailyProgress",
    "Bundle",
    "MealLogResult",
    "SyncKey",
    "default_value",
    "dump_value",
    "parse_value",
]
