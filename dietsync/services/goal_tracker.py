"""Goal tracking and progress reporting."""

from datetime import date
from typing import Optional
from zoneinfo import ZoneInfo

from dietsync.config import get_settings
from dietsync.models.bundle import Bundle
from dietsync.models.tracking import DailyProgress
from dietsync.services.streaks import meals_on, today_in
from dietsync.services.sync_engine import SyncEngine


class GoalTracker:
    """Track progress towards calorie and streak goals."""

    def __init__(self, engine: SyncEngine, tz: Optional[ZoneInfo] = None):
        self.engine = engine
        self.tz = tz or ZoneInfo(get_settings().timezone)

    def get_daily_progress(self, user_id: str, target_date: Optional[date] = None) -> DailyProgress:
        """Get progress for a specific day from the user's current bundle."""
        return self.progress_for(self.engine.bundle(user_id), target_date)

    def progress_for(self, bundle: Bundle, target_date: Optional[date] = None) -> DailyProgress:
        target_date = target_date or today_in(self.tz)
        settings = bundle.settings

        meals = meals_on(bundle.meals, target_date, self.tz)
        consumed = sum(m.calories for m in meals)
        target = settings.daily_calorie_goal

        return DailyProgress(
            day=target_date,
            nickname=settings.nickname,
            calories_consumed=consumed,
            calories_target=target,
            calories_remaining=max(target - consumed, 0),
            percentage=min(round(consumed / target * 100), 100),
            meals_logged=len(meals),
            current_streak=bundle.streak.current_streak,
            longest_streak=bundle.streak.longest_streak,
            streak_goal=settings.streak_goal,
            goals_achieved=bundle.goals_achieved,
            goal_met=consumed >= target,
        )

    def format_daily_summary(self, progress: DailyProgress) -> str:
        """Format daily progress as a readable message."""
        greeting = f"Hi {progress.nickname}! " if progress.nickname else ""
        status = "Goal reached!" if progress.goal_met else f"{progress.calories_remaining} cal to go"

        return f"""{greeting}Daily Summary - {progress.day.strftime('%B %d')}

Calories: {progress.calories_consumed} / {progress.calories_target} ({progress.percentage}%)
Meals logged: {progress.meals_logged}
Streak: {progress.current_streak} / {progress.streak_goal} days (best {progress.longest_streak})
Goals achieved: {progress.goals_achieved}

Status: {status}"""
