from datetime import datetime, time
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ecole_manager.core.enums import Weekday


def parse_time_24(v: Union[str, time]) -> time:
    """Parse 24-hour time string (HH:MM or HH:MM:SS) to time."""
    if isinstance(v, time):
        return v
    if isinstance(v, str):
        v = v.strip()
        if len(v) == 5:  # HH:MM
            return datetime.strptime(v, "%H:%M").time()
        return datetime.strptime(v, "%H:%M:%S").time()
    raise ValueError("start_time/end_time must be 24-hour string (e.g. 09:00, 09:45) or time")


class TimetableBlockCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: Weekday
    start_time: Union[str, time] = Field(..., description="24-hour format, e.g. 09:00")
    end_time: Union[str, time] = Field(..., description="24-hour format, e.g. 09:45")
    room: Optional[str] = None
    color: Optional[str] = None

    class Config:
        use_enum_values = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Union[str, time]) -> time:
        return parse_time_24(v)

    @model_validator(mode="after")
    def check_range(self) -> "TimetableBlockCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimetableBlockUpdate(BaseModel):
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    teacher_id: Optional[str] = None
    day_of_week: Optional[Weekday] = None
    start_time: Optional[Union[str, time]] = Field(None, description="24-hour format, e.g. 09:00")
    end_time: Optional[Union[str, time]] = Field(None, description="24-hour format, e.g. 09:45")
    room: Optional[str] = None
    color: Optional[str] = None

    class Config:
        use_enum_values = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Optional[Union[str, time]]) -> Optional[time]:
        if v is None:
            return None
        return parse_time_24(v)


class TimetableBlockRead(BaseModel):
    id: str
    year_id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: str
    start_time: time
    end_time: time
    room: Optional[str] = None
    color: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClassTimetableEntry(TimetableBlockRead):
    subject_name: str
    teacher_first_name: str
    teacher_last_name: str


class TeacherTimetableEntry(TimetableBlockRead):
    subject_name: str
    class_name: str
