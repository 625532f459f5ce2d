"""User settings model."""

from pydantic import BaseModel, Field


class UserSettings(BaseModel):
    """Goals and display name chosen during onboarding or on the settings page."""

    nickname: str = ""
    daily_calorie_goal: int = Field(2000, gt=0, alias="dailyCalorieGoal")
    streak_goal: int = Field(7, gt=0, alias="streakGoal")

    class Config:
        populate_by_name = True
