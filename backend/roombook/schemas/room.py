from pydantic import BaseModel, Field, field_validator

from roombook.models.room import RoomStatus


def _normalize_features(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return list(dict.fromkeys(item.strip().lower() for item in value if item.strip()))


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=50)
    building: str | None = Field(default=None, max_length=200)
    floor: int | None = Field(default=None, ge=-5, le=200)
    capacity: int = Field(ge=1, le=5000)
    room_type: str | None = Field(default=None, max_length=50)
    features: list[str] = Field(default_factory=list, max_length=50)
    status: RoomStatus = RoomStatus.available
    faculty_id: str | None = Field(default=None, max_length=36)
    description: str | None = None

    @field_validator("features")
    @classmethod
    def normalize_features(cls, value: list[str]) -> list[str]:
        return _normalize_features(value)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=50)
    building: str | None = Field(default=None, max_length=200)
    floor: int | None = Field(default=None, ge=-5, le=200)
    capacity: int | None = Field(default=None, ge=1, le=5000)
    room_type: str | None = Field(default=None, max_length=50)
    features: list[str] | None = Field(default=None, max_length=50)
    status: RoomStatus | None = None
    faculty_id: str | None = Field(default=None, max_length=36)
    description: str | None = None

    @field_validator("features")
    @classmethod
    def normalize_features(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_features(value)


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}
