from datetime import date, datetime, time, timezone
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from roombook.models.reservation import EventType, ReservationStatus
from roombook.services.recurrence import MAX_OCCURRENCE_COUNT, Frequency, MonthOverflow

EQUIPMENT_OPTIONS = {
    "projector",
    "computer",
    "whiteboard",
    "microphone",
    "sound_system",
    "video_conference",
    "laboratory_equipment",
}


class UntilTermination(BaseModel):
    type: Literal["until"] = "until"
    end_date: date


class OccurrencesTermination(BaseModel):
    type: Literal["occurrences"] = "occurrences"
    count: int = Field(ge=1, le=MAX_OCCURRENCE_COUNT)


Termination = Annotated[UntilTermination | OccurrencesTermination, Field(discriminator="type")]


class RecurrenceIn(BaseModel):
    frequency: Frequency
    days_of_week: list[int] = Field(default_factory=list, max_length=7)
    termination: Termination
    month_overflow: MonthOverflow | None = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value: list[int]) -> list[int]:
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(value))


class ReservationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    notes: str | None = None
    room_id: str = Field(min_length=1, max_length=36)
    course_id: str | None = Field(default=None, max_length=36)
    date: date
    start_time: time
    end_time: time
    event_type: EventType = EventType.class_
    attendee_count: int = Field(default=0, ge=0, le=10000)
    equipment_needed: list[str] = Field(default_factory=list, max_length=20)
    recurrence: RecurrenceIn | None = None

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Title cannot be empty")
        return trimmed

    @field_validator("course_id")
    @classmethod
    def normalize_course_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("equipment_needed")
    @classmethod
    def validate_equipment(cls, value: list[str]) -> list[str]:
        normalized = list(dict.fromkeys(item.strip().lower() for item in value if item.strip()))
        unknown = sorted(set(normalized) - EQUIPMENT_OPTIONS)
        if unknown:
            raise ValueError(f"Unknown equipment: {', '.join(unknown)}")
        return normalized

    @model_validator(mode="after")
    def validate_time_order(self) -> "ReservationCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ReservationOut(BaseModel):
    id: str
    room_id: str
    course_id: str | None
    title: str
    description: str | None
    notes: str | None
    start_datetime: datetime
    end_datetime: datetime
    event_type: EventType
    status: ReservationStatus
    attendee_count: int
    equipment_needed: list[str]
    recurring_template_id: str | None
    created_by: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("start_datetime", "end_datetime", "created_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite hands back naive values; everything is stored in UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ReservationCreateResult(BaseModel):
    reservation: ReservationOut
    recurring_template_id: str | None
    recurring_created: int
    recurring_skipped: int


class ConflictOut(BaseModel):
    has_conflict: bool
    conflicts: list[ReservationOut]


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationCancel(BaseModel):
    scope: Literal["single", "series"] = "single"


class ReservationCancelResult(BaseModel):
    scope: Literal["single", "series"]
    cancelled: int
