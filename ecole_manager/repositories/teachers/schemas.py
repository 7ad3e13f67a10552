from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ecole_manager.core.enums import ContactType, TeacherPaymentType


class TeacherCreate(BaseModel):
    id: str = Field(..., min_length=1)
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    hire_date: Optional[date] = None
    payment_type: TeacherPaymentType = TeacherPaymentType.FIXED
    salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    residence: Optional[str] = None
    contact_type: ContactType = ContactType.PHONE
    years_experience: int = Field(0, ge=0)
    nationality: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None

    class Config:
        use_enum_values = True


class TeacherUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    hire_date: Optional[date] = None
    payment_type: Optional[TeacherPaymentType] = None
    salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    residence: Optional[str] = None
    contact_type: Optional[ContactType] = None
    years_experience: Optional[int] = Field(None, ge=0)
    nationality: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None

    class Config:
        use_enum_values = True


class TeacherRead(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    hire_date: Optional[date] = None
    payment_type: str
    salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    residence: Optional[str] = None
    contact_type: str
    years_experience: int
    nationality: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeacherAssignmentCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    teacher_id: str
    class_id: Optional[str] = None
    subject_id: Optional[str] = None


class TeacherAssignmentRead(BaseModel):
    id: str
    year_id: str
    teacher_id: str
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
