"""Persisted note record for a day-bucket."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TEXT_FIELDS = ("failingIssues", "nonFailingIssues", "discussion")
IDENTIFIER_FIELDS = ("projectID", "attemptID", "operationID")
EDITABLE_FIELDS = TEXT_FIELDS + IDENTIFIER_FIELDS


class NoteRecord(BaseModel):
    """One note as stored under its bucket key.

    Field aliases are the camelCase names used on disk; records written by
    older versions with a single ``text`` field are migrated on load.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    failing_issues: str = Field(default="", alias="failingIssues")
    non_failing_issues: str = Field(default="", alias="nonFailingIssues")
    discussion: str = ""
    project_id: str = Field(default="", alias="projectID")
    attempt_id: str = Field(default="", alias="attemptID")
    operation_id: str = Field(default="", alias="operationID")
    start_timestamp: int | None = Field(default=None, alias="startTimestamp")
    end_timestamp: int | None = Field(default=None, alias="endTimestamp")
    additional_time: int = Field(default=0, alias="additionalTime")
    completed: bool = False
    canceled: bool = False
    has_started: bool = Field(default=False, alias="hasStarted")

    @model_validator(mode="before")
    @classmethod
    def migrate_legacy_text(cls, data: Any) -> Any:
        """Map a legacy ``text`` record onto failingIssues."""
        if isinstance(data, dict) and "text" in data:
            migrated = {k: v for k, v in data.items() if k not in TEXT_FIELDS + IDENTIFIER_FIELDS}
            migrated.pop("text")
            migrated["failingIssues"] = data.get("text") or ""
            return migrated
        return data

    @field_validator(
        "failing_issues",
        "non_failing_issues",
        "discussion",
        "project_id",
        "attempt_id",
        "operation_id",
        mode="before",
    )
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("start_timestamp", "end_timestamp", mode="before")
    @classmethod
    def falsy_timestamp_as_none(cls, value: Any) -> Any:
        if not value:
            return None
        if isinstance(value, float):
            return int(value)
        return value

    @field_validator("additional_time", mode="before")
    @classmethod
    def additional_time_as_int(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        if isinstance(value, float):
            return int(value)
        return value

    @field_validator("completed", "canceled", "has_started", mode="before")
    @classmethod
    def none_as_false(cls, value: Any) -> Any:
        return False if value is None else value

    def get(self, field: str) -> str:
        """Read an editable field by its on-disk name."""
        return getattr(self, _ATTRS[field])

    def has_content(self) -> bool:
        """True when any text or identifier field is non-empty."""
        return any(self.get(name) for name in EDITABLE_FIELDS)

    def persisted_seconds(self, now_ms: int | None = None) -> int:
        """Elapsed seconds derived from stored timestamps.

        An open session only counts when ``now_ms`` is given.
        """
        seconds = self.additional_time
        if self.start_timestamp and self.end_timestamp:
            seconds += (self.end_timestamp - self.start_timestamp) // 1000
        elif self.start_timestamp and now_ms is not None:
            seconds += (now_ms - self.start_timestamp) // 1000
        return seconds

    def to_json(self) -> dict[str, Any]:
        """Dump with on-disk field names."""
        return self.model_dump(mode="json", by_alias=True)


_ATTRS = {
    "failingIssues": "failing_issues",
    "nonFailingIssues": "non_failing_issues",
    "discussion": "discussion",
    "projectID": "project_id",
    "attemptID": "attempt_id",
    "operationID": "operation_id",
}


def attribute_for(field: str) -> str:
    """Model attribute behind an on-disk editable field name.

    Raises:
        ValueError: If the field is not editable.
    """
    try:
        return _ATTRS[field]
    except KeyError:
        raise ValueError(f"Unknown note field: {field}") from None
