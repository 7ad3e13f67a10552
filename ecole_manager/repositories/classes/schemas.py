from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    name: str = Field(..., min_length=1)
    level: Optional[str] = None
    description: Optional[str] = None
    capacity: int = Field(30, ge=0)
    main_teacher_id: Optional[str] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    level: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    main_teacher_id: Optional[str] = None


class ClassRead(BaseModel):
    id: str
    year_id: str
    name: str
    level: Optional[str] = None
    description: Optional[str] = None
    capacity: int
    main_teacher_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClassWithStudentCount(ClassRead):
    student_count: int
