"""The per-user bundle of synced state and its key vocabulary."""

import json
from enum import Enum
from typing import Annotated, Any, Dict, List

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from dietsync.errors import BadRequestError

from .meal import Meal
from .tracking import Streak
from .user import UserSettings


class SyncKey(str, Enum):
    """Keys stored per user in the persistence gateway."""

    SETTINGS = "settings"
    MEALS = "meals"
    STREAK = "streak"
    GOALS_ACHIEVED = "goalsAchieved"

    @property
    def field_name(self) -> str:
        return _FIELD_NAMES[self]

    @classmethod
    def parse(cls, raw: Any) -> "SyncKey":
        """Turn a wire key into a SyncKey, rejecting anything outside the vocabulary."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise BadRequestError(f"Unknown sync key: {raw!r}") from None


_FIELD_NAMES = {
    SyncKey.SETTINGS: "settings",
    SyncKey.MEALS: "meals",
    SyncKey.STREAK: "streak",
    SyncKey.GOALS_ACHIEVED: "goals_achieved",
}

_ADAPTERS: Dict[SyncKey, TypeAdapter] = {
    SyncKey.SETTINGS: TypeAdapter(UserSettings),
    SyncKey.MEALS: TypeAdapter(List[Meal]),
    SyncKey.STREAK: TypeAdapter(Streak),
    SyncKey.GOALS_ACHIEVED: TypeAdapter(Annotated[int, Field(ge=0)]),
}


class Bundle(BaseModel):
    """Everything the app keeps in sync for one user."""

    settings: UserSettings = Field(default_factory=UserSettings)
    meals: List[Meal] = []
    streak: Streak = Field(default_factory=Streak)
    goals_achieved: int = Field(0, ge=0, alias="goalsAchieved")

    class Config:
        populate_by_name = True

    def get(self, key: SyncKey) -> Any:
        return getattr(self, key.field_name)

    def with_value(self, key: SyncKey, value: Any) -> "Bundle":
        """Return a copy with one key replaced."""
        return self.model_copy(update={key.field_name: value})

    def snapshot(self) -> str:
        """Canonical JSON used for change detection."""
        return json.dumps(self.model_dump(mode="json", by_alias=True), sort_keys=True)


class MealLogResult(BaseModel):
    """Outcome of applying one meal to a bundle."""

    bundle: Bundle
    total_calories_today: int
    streak_extended: bool = False
    goal_achieved: bool = False
    changed_keys: List[SyncKey] = []


def default_value(key: SyncKey) -> Any:
    """Value used when a key has never been stored."""
    return Bundle().get(key)


def parse_value(key: SyncKey, raw: Any) -> Any:
    """Validate a raw (wire or caller supplied) value for ``key``."""
    if raw is None:
        raise BadRequestError(f"Missing data for {key.value}", key.value)
    try:
        return _ADAPTERS[key].validate_python(raw)
    except ValidationError as e:
        raise BadRequestError(f"Invalid data for {key.value}: {e}", key.value) from e


def dump_value(key: SyncKey, value: Any) -> Any:
    """JSON-ready form of a value, using the wire field names."""
    return _ADAPTERS[key].dump_python(value, mode="json", by_alias=True)
