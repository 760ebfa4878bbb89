"""Category timer data models for off-platform time."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_serializer


class Category(str, Enum):
    """Fixed set of off-platform time categories."""

    PROJECT_TRAINING = "projectTraining"
    SHEETWORK = "sheetwork"
    BLOCKED = "blocked"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)


class TimerEntry(BaseModel):
    """One category's stored state within a bucket."""

    startTime: int | None = None
    totalSeconds: int = 0
    shouldBeRunning: bool = False

    @property
    def running(self) -> bool:
        return self.startTime is not None

    @model_serializer(mode="plain")
    def serialize(self) -> dict[str, Any]:
        data: dict[str, Any] = {"startTime": self.startTime, "totalSeconds": self.totalSeconds}
        # Only written while set, matching the stored record shape.
        if self.shouldBeRunning:
            data["shouldBeRunning"] = True
        return data


def _default_timers() -> dict[str, TimerEntry]:
    return {category: TimerEntry() for category in CATEGORIES}


class OffPlatformData(BaseModel):
    """Everything stored under ``offPlatform_<bucket>``."""

    timers: dict[str, TimerEntry] = Field(default_factory=_default_timers)

    def model_post_init(self, __context: Any) -> None:
        for category in CATEGORIES:
            self.timers.setdefault(category, TimerEntry())
