"""Streak and goal rules derived from logged meals.

Everything here is pure: functions take a bundle and return a new one.
"Today's calories" only counts meals whose timestamp falls on today's date
in the user's timezone.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from dietsync.models.bundle import Bundle, MealLogResult, SyncKey
from dietsync.models.meal import Meal
from dietsync.models.tracking import Streak


def local_date(timestamp: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of a timestamp, in ``tz`` when both are timezone aware."""
    if tz is not None and timestamp.tzinfo is not None:
        return timestamp.astimezone(tz).date()
    return timestamp.date()


def today_in(tz: Optional[tzinfo] = None) -> date:
    return datetime.now(tz).date() if tz is not None else date.today()


def meals_on(meals: Iterable[Meal], day: date, tz: Optional[tzinfo] = None) -> list:
    return [m for m in meals if local_date(m.timestamp, tz) == day]


def total_calories_for_day(meals: Iterable[Meal], day: date, tz: Optional[tzinfo] = None) -> int:
    return sum(m.calories for m in meals_on(meals, day, tz))


def advance_streak(streak: Streak, day: date) -> Streak:
    """Record that the calorie goal was met on ``day``."""
    if streak.last_log_date == day:
        # Already counted today
        return streak

    if streak.last_log_date == day - timedelta(days=1):
        current = streak.current_streak + 1
    else:
        # Streak broken (or never started), start over
        current = 1

    return Streak(
        last_log_date=day,
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
    )


def apply_meal_log(
    bundle: Bundle,
    meal: Meal,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> MealLogResult:
    """Append a meal and update the streak and goals-achieved count.

    The streak moves at most once per day: only when today's total reaches
    the daily calorie goal and the streak has not already been counted for
    today. ``goals_achieved`` goes up when that move makes the current
    streak reach the streak goal.
    """
    today = today or today_in(tz)
    settings = bundle.settings

    meals = bundle.meals + [meal]
    updated = bundle.with_value(SyncKey.MEALS, meals)
    total = total_calories_for_day(meals, today, tz)

    result = MealLogResult(
        bundle=updated,
        total_calories_today=total,
        changed_keys=[SyncKey.MEALS],
    )

    streak = bundle.streak
    if total < settings.daily_calorie_goal or streak.last_log_date == today:
        return result

    new_streak = advance_streak(streak, today)
    continued = new_streak.current_streak > 1
    previous = streak.current_streak if continued else 0

    updated = updated.with_value(SyncKey.STREAK, new_streak)
    result.streak_extended = True
    result.changed_keys.append(SyncKey.STREAK)

    if previous < settings.streak_goal <= new_streak.current_streak:
        updated = updated.with_value(SyncKey.GOALS_ACHIEVED, bundle.goals_achieved + 1)
        result.goal_achieved = True
        result.changed_keys.append(SyncKey.GOALS_ACHIEVED)

    result.bundle = updated
    return result
