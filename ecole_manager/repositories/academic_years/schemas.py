from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class AcademicYearCreate(BaseModel):
    id: str = Field(..., min_length=1, description="e.g. 2025-2026")
    name: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    closed: bool = False


class AcademicYearUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    closed: Optional[bool] = None


class AcademicYearRead(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    closed: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
