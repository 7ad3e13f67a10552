import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from ecole_manager.core.enums import LanguageType, Term


class SubjectCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    name: str = Field(..., min_length=1)
    coefficient: float = Field(1.0, ge=0)
    is_optional: bool = False
    language_type: Optional[LanguageType] = None

    class Config:
        use_enum_values = True


class SubjectRead(BaseModel):
    id: str
    year_id: str
    name: str
    coefficient: float
    is_optional: bool
    language_type: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class SubjectEnrollmentCreate(BaseModel):
    student_id: str
    subject_id: str
    year_id: str
    class_id: str
    semester: Term

    class Config:
        use_enum_values = True


class SubjectEnrollmentRead(BaseModel):
    student_id: str
    subject_id: str
    year_id: str
    class_id: str
    semester: str
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class GradeItemCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    subject_id: str
    class_id: str
    name: str = Field(..., min_length=1)
    max_points: float = Field(20.0, gt=0)
    weight: float = Field(1.0, ge=0)
    term: Term

    class Config:
        use_enum_values = True


class GradeItemRead(BaseModel):
    id: str
    year_id: str
    subject_id: str
    class_id: str
    name: str
    max_points: float
    weight: float
    term: str
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class GradeSave(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    grade_item_id: str
    student_id: str
    score: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None


class GradeRead(BaseModel):
    id: str
    year_id: str
    grade_item_id: str
    student_id: str
    score: Optional[float] = None
    date: Optional[dt.date] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class StudentGradeEntry(GradeRead):
    grade_item_name: str
    max_points: float
    weight: float
    subject_name: str


class ClassGradeEntry(StudentGradeEntry):
    first_name: str
    last_name: str


class SubjectAverage(BaseModel):
    """Row of the student_grades_summary view."""

    student_id: str
    year_id: str
    class_id: str
    subject_id: str
    term: str
    weighted_average: float
    grade_count: int
