"""Streak and progress models."""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date


class Streak(BaseModel):
    """Consecutive days on which the daily calorie goal was met."""

    last_log_date: Optional[date] = Field(None, alias="lastLogDate")
    current_streak: int = Field(0, ge=0, alias="currentStreak")
    longest_streak: int = Field(0, ge=0, alias="longestStreak")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_longest(self) -> "Streak":
        if self.current_streak > self.longest_streak:
            raise ValueError("current_streak cannot exceed longest_streak")
        return self


class DailyProgress(BaseModel):
    """Daily progress summary."""

    day: date
    nickname: str
    calories_consumed: int
    calories_target: int
    calories_remaining: int
    percentage: int
    meals_logged: int
    current_streak: int
    longest_streak: int
    streak_goal: int
    goals_achieved: int
    goal_met: bool
