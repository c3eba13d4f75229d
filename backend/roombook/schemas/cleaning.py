from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class ObservationTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("description", "category")
    @classmethod
    def normalize_optional_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class ObservationTypeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class ObservationTypeOut(BaseModel):
    id: str
    name: str
    description: str | None
    category: str | None
    is_active: bool

    model_config = {"from_attributes": True}


class CleaningReportGenerate(BaseModel):
    cleaning_date: date


class CleaningReportGenerateResult(BaseModel):
    cleaning_date: date
    created: int
    existing: int


class CleaningStatusUpdate(BaseModel):
    is_cleaned: bool
    cleaned_by: str | None = Field(default=None, max_length=200)

    @field_validator("cleaned_by")
    @classmethod
    def normalize_cleaned_by(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    @model_validator(mode="after")
    def require_cleaner(self) -> "CleaningStatusUpdate":
        if self.is_cleaned and not self.cleaned_by:
            raise ValueError("cleaned_by is required when marking a room as cleaned")
        return self


class CleaningObservationsUpdate(BaseModel):
    observations: list[str] = Field(default_factory=list, max_length=50)
    notes: str | None = None

    @field_validator("observations")
    @classmethod
    def dedupe_observations(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(item.strip() for item in value if item.strip()))

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class CleaningRoomOut(BaseModel):
    id: str
    name: str
    code: str
    building: str | None
    floor: int | None
    faculty_id: str | None

    model_config = {"from_attributes": True}


class CleaningReportOut(BaseModel):
    id: str
    room_id: str
    cleaning_date: date
    is_cleaned: bool
    cleaned_by: str | None
    cleaned_at: datetime | None
    observations: list[str]
    notes: str | None
    room: CleaningRoomOut | None = None

    model_config = {"from_attributes": True}

    @field_validator("cleaned_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CleaningSummaryOut(BaseModel):
    cleaning_date: date
    total: int
    completed: int
    pending: int
    with_observations: int
