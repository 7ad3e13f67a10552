from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class GuardianCreate(BaseModel):
    id: str = Field(..., min_length=1)
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None
    address: Optional[str] = None


class GuardianUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None
    address: Optional[str] = None


class GuardianRead(BaseModel):
    id: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentGuardianRead(BaseModel):
    student_id: str
    guardian_id: str
    is_primary: bool

    class Config:
        from_attributes = True


class StudentGuardianEntry(GuardianRead):
    is_primary: bool
