from pydantic import BaseModel, Field


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(min_length=1, max_length=200)
    description: str | None = None
    credits: int | None = Field(default=3, ge=0, le=40)
    max_students: int | None = Field(default=None, ge=1, le=5000)
    professor_id: str | None = Field(default=None, max_length=36)
    academic_period_id: str | None = Field(default=None, max_length=36)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    department: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    credits: int | None = Field(default=None, ge=0, le=40)
    max_students: int | None = Field(default=None, ge=1, le=5000)
    professor_id: str | None = Field(default=None, max_length=36)
    academic_period_id: str | None = Field(default=None, max_length=36)


class CourseOut(CourseBase):
    id: str

    model_config = {"from_attributes": True}
