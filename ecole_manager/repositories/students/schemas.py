from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ecole_manager.core.enums import EnrollmentStatus, Gender


class StudentCreate(BaseModel):
    id: str = Field(..., min_length=1)
    first_name: str
    last_name: str
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    gender: Optional[Gender] = None
    student_number: Optional[str] = None

    class Config:
        use_enum_values = True


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    gender: Optional[Gender] = None
    student_number: Optional[str] = None

    class Config:
        use_enum_values = True


class StudentRead(BaseModel):
    id: str
    first_name: str
    last_name: str
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    gender: Optional[str] = None
    student_number: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrollmentCreate(BaseModel):
    id: str = Field(..., min_length=1)
    student_id: str
    class_id: str
    year_id: str
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    enrollment_date: Optional[date] = None

    class Config:
        use_enum_values = True


class EnrollmentRead(BaseModel):
    id: str
    student_id: str
    class_id: str
    year_id: str
    status: str
    enrollment_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentInClass(StudentRead):
    enrollment_date: Optional[date] = None
    status: str


class StudentHistoryEntry(BaseModel):
    student_id: str
    year_id: str
    class_id: str
    class_name: str
    year_name: str
    status: str
    enrollment_date: Optional[date] = None
