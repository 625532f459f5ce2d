"""Tests for streak and goal rules."""

from datetime import date, timedelta, timezone

from dietsync.models.bundle import Bundle, SyncKey
from dietsync.models.tracking import Streak
from dietsync.models.user import UserSettings
from dietsync.services.streaks import advance_streak, apply_meal_log, total_calories_for_day

from tests.conftest import meal_on

DAY1 = date(2026, 3, 2)


def make_bundle(calorie_goal=2000, streak_goal=3, **kwargs):
    return Bundle(
        settings=UserSettings(daily_calorie_goal=calorie_goal, streak_goal=streak_goal),
        **kwargs,
    )


def log(bundle, day, calories):
    return apply_meal_log(bundle, meal_on(day, calories), today=day, tz=timezone.utc)


def test_meal_is_appended_in_order():
    bundle = make_bundle()
    first = log(bundle, DAY1, 300).bundle
    second = log(first, DAY1, 400).bundle

    assert [m.calories for m in second.meals] == [300, 400]
    assert bundle.meals == []


def test_total_counts_only_todays_meals():
    meals = [meal_on(DAY1 - timedelta(days=1), 1500), meal_on(DAY1, 600), meal_on(DAY1, 700)]
    assert total_calories_for_day(meals, DAY1, timezone.utc) == 1300


def test_yesterdays_meals_do_not_count_towards_today():
    bundle = make_bundle(meals=[meal_on(DAY1 - timedelta(days=1), 1900)])
    result = log(bundle, DAY1, 500)

    assert result.total_calories_today == 500
    assert result.bundle.streak == Streak()
    assert not result.streak_extended


def test_below_goal_leaves_streak_alone():
    bundle = make_bundle()
    once = log(bundle, DAY1, 800)
    twice = log(once.bundle, DAY1, 900)

    for result in (once, twice):
        assert result.bundle.streak == bundle.streak
        assert result.bundle.goals_achieved == 0
        assert result.changed_keys == [SyncKey.MEALS]


def test_meeting_goal_starts_streak():
    result = log(make_bundle(), DAY1, 2100)
    streak = result.bundle.streak

    assert result.streak_extended
    assert streak.current_streak == 1
    assert streak.longest_streak == 1
    assert streak.last_log_date == DAY1
    assert result.changed_keys == [SyncKey.MEALS, SyncKey.STREAK]


def test_goal_crossed_by_several_meals():
    first = log(make_bundle(), DAY1, 1200)
    second = log(first.bundle, DAY1, 900)

    assert not first.streak_extended
    assert second.streak_extended
    assert second.bundle.streak.current_streak == 1


def test_more_meals_after_goal_met_do_not_recount():
    first = log(make_bundle(), DAY1, 2100)
    second = log(first.bundle, DAY1, 500)

    assert second.bundle.streak == first.bundle.streak
    assert not second.streak_extended
    assert second.changed_keys == [SyncKey.MEALS]


def test_consecutive_days_build_streak():
    bundle = make_bundle(streak_goal=30)
    for i in range(5):
        bundle = log(bundle, DAY1 + timedelta(days=i), 2000).bundle

    assert bundle.streak.current_streak == 5
    assert bundle.streak.longest_streak == 5


def test_skipped_day_resets_streak_but_keeps_longest():
    bundle = make_bundle(streak_goal=30)
    for i in range(4):
        bundle = log(bundle, DAY1 + timedelta(days=i), 2500).bundle

    bundle = log(bundle, DAY1 + timedelta(days=5), 2500).bundle

    assert bundle.streak.current_streak == 1
    assert bundle.streak.longest_streak == 4


def test_four_day_scenario():
    bundle = make_bundle(calorie_goal=2000, streak_goal=3)

    bundle = log(bundle, DAY1, 2100).bundle
    assert bundle.streak.current_streak == 1

    bundle = log(bundle, DAY1 + timedelta(days=1), 2050).bundle
    assert bundle.streak.current_streak == 2

    day3 = log(bundle, DAY1 + timedelta(days=2), 1900)
    assert not day3.streak_extended
    assert day3.bundle.streak.current_streak == 2
    bundle = day3.bundle

    bundle = log(bundle, DAY1 + timedelta(days=3), 2200).bundle
    assert bundle.streak.current_streak == 1
    assert bundle.streak.longest_streak == 2
    assert bundle.goals_achieved == 0


def test_goals_achieved_counts_the_crossing_once():
    bundle = make_bundle(streak_goal=3)
    results = []
    for i in range(5):
        result = log(bundle, DAY1 + timedelta(days=i), 2000)
        results.append(result)
        bundle = result.bundle

    assert [r.goal_achieved for r in results] == [False, False, True, False, False]
    assert bundle.goals_achieved == 1
    assert results[2].changed_keys == [SyncKey.MEALS, SyncKey.STREAK, SyncKey.GOALS_ACHIEVED]


def test_goals_achieved_counts_again_after_a_new_run():
    bundle = make_bundle(streak_goal=2)
    for offset in (0, 1, 5, 6):
        bundle = log(bundle, DAY1 + timedelta(days=offset), 2000).bundle

    assert bundle.goals_achieved == 2


def test_same_day_meals_cannot_double_count_goal():
    bundle = make_bundle(streak_goal=1)
    first = log(bundle, DAY1, 2000)
    second = log(first.bundle, DAY1, 2000)

    assert first.goal_achieved
    assert not second.goal_achieved
    assert second.bundle.goals_achieved == 1


def test_advance_streak_same_day_is_a_no_op():
    streak = Streak(last_log_date=DAY1, current_streak=2, longest_streak=5)
    assert advance_streak(streak, DAY1) is streak
