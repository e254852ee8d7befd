import datetime as dt

from pydantic import BaseModel, Field, field_validator

from app.models.schedule import ScheduleStatus
from app.services.time_ranges import TIME_PATTERN, parse_time


def _coerce_time(value):
    if isinstance(value, str):
        if not TIME_PATTERN.match(value.strip()):
            raise ValueError("Time must be in HH:MM or HH:MM:SS 24-hour format")
        return parse_time(value)
    return value


class ScheduleBase(BaseModel):
    room_id: str = Field(min_length=1, max_length=36)
    course_id: str = Field(min_length=1, max_length=36)
    instructor_id: str = Field(min_length=1, max_length=36)
    date: dt.date
    start_time: dt.time
    end_time: dt.time

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value):
        return _coerce_time(value)


class ScheduleCreate(ScheduleBase):
    pass


class ScheduleUpdate(BaseModel):
    room_id: str | None = Field(default=None, min_length=1, max_length=36)
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    instructor_id: str | None = Field(default=None, min_length=1, max_length=36)
    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value):
        return _coerce_time(value)


class ScheduleOut(ScheduleBase):
    id: str
    status: ScheduleStatus
    created_by: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    model_config = {"from_attributes": True}


class ScheduleDetailOut(ScheduleOut):
    room_code: str
    room_name: str
    course_code: str
    course_name: str
    instructor_name: str


class ScheduleValidationOut(BaseModel):
    isValid: bool
    errors: list[str]
    details: dict


class BulkCreateOut(BaseModel):
    created: int
    ids: list[str]
