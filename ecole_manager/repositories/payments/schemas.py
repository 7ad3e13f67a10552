from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ecole_manager.core.enums import PaymentType, Periodicity


class FeesPerClassSave(BaseModel):
    year_id: str
    class_id: str
    inscription: float = Field(0, ge=0)
    mensualite: float = Field(0, ge=0)


class FeesPerClassRead(BaseModel):
    year_id: str
    class_id: str
    inscription: float
    mensualite: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExtraFeeCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    name: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)


class ExtraFeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0)


class ExtraFeeRead(BaseModel):
    id: str
    year_id: str
    name: str
    amount: float
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    name: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    periodicity: Periodicity = Periodicity.MONTHLY

    class Config:
        use_enum_values = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    periodicity: Optional[Periodicity] = None

    class Config:
        use_enum_values = True


class ServiceRead(BaseModel):
    id: str
    year_id: str
    name: str
    amount: float
    periodicity: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    student_id: str
    type: PaymentType
    class_id: Optional[str] = None
    month: Optional[str] = None
    item_id: Optional[str] = None
    method: Optional[str] = None
    amount: float
    payment_date: Optional[date] = None

    class Config:
        use_enum_values = True


class PaymentRead(BaseModel):
    id: str
    year_id: str
    student_id: str
    type: str
    class_id: Optional[str] = None
    month: Optional[str] = None
    item_id: Optional[str] = None
    method: Optional[str] = None
    amount: float
    payment_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentSummary(BaseModel):
    """Row of the payment_summary view."""

    student_id: str
    year_id: str
    type: str
    class_id: Optional[str] = None
    month: Optional[str] = None
    item_id: Optional[str] = None
    total_paid: float
    payment_count: int
    last_payment_date: Optional[date] = None


class FeesDue(BaseModel):
    """Row of the fees_due view."""

    student_id: str
    year_id: str
    class_id: str
    inscription_due: float
    mensualite_due: float
