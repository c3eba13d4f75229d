from datetime import date

from pydantic import BaseModel, Field, model_validator

from roombook.models.academic_period import AcademicPeriodType


class AcademicPeriodBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    period_type: AcademicPeriodType
    start_date: date
    end_date: date
    is_active: bool = True

    @model_validator(mode="after")
    def validate_date_order(self) -> "AcademicPeriodBase":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AcademicPeriodCreate(AcademicPeriodBase):
    pass


class AcademicPeriodUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    period_type: AcademicPeriodType | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


class AcademicPeriodOut(AcademicPeriodBase):
    id: str

    model_config = {"from_attributes": True}
