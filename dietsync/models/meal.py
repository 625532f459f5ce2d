"""Meal models."""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from uuid import uuid4

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


class MealCreate(BaseModel):
    """Data for logging a meal."""

    name: str = Field(min_length=1)
    calories: int = Field(0, ge=0)
    meal_type: MealType = Field("snack", alias="type")
    timestamp: Optional[datetime] = None

    class Config:
        populate_by_name = True


class Meal(BaseModel):
    """A logged meal. Never edited once appended to a user's meal list."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    calories: int = Field(ge=0)
    timestamp: datetime
    meal_type: MealType = Field("snack", alias="type")

    class Config:
        populate_by_name = True

    @classmethod
    def from_create(cls, data: MealCreate, now: Optional[datetime] = None) -> "Meal":
        """Build a meal from user input, stamping it with the current time if needed."""
        return cls(
            name=data.name,
            calories=data.calories,
            meal_type=data.meal_type,
            timestamp=data.timestamp or now or datetime.now().astimezone(),
        )
