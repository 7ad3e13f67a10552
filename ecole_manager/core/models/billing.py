"""Fee configuration, per-student activations and payments (all per year)."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    text,
)

from ecole_manager.core.enums import PaymentType, Periodicity, check_in
from ecole_manager.db.session import Base

Money = Numeric(10, 2, asdecimal=False)


class FeesPerClass(Base):
    __tablename__ = "fees_per_class"
    __table_args__ = (
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
    )

    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    class_id = Column(String, primary_key=True)
    inscription = Column(Money, nullable=False, server_default=text("0"))
    mensualite = Column(Money, nullable=False, server_default=text("0"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class ExtraFee(Base):
    __tablename__ = "extra_fees"
    __table_args__ = (UniqueConstraint("year_id", "name", name="uq_extra_fees_year_name"),)

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class Service(Base):
    """Optional billable service (canteen, transport, ...)."""

    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("year_id", "name", name="uq_services_year_name"),
        CheckConstraint(check_in("periodicity", Periodicity), name="ck_services_periodicity"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    periodicity = Column(String, nullable=False, server_default=text("'monthly'"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class StudentFeeActivation(Base):
    __tablename__ = "student_fee_activations"
    __table_args__ = (
        ForeignKeyConstraint(
            ["extra_fee_id", "year_id"], ["extra_fees.id", "extra_fees.year_id"], ondelete="CASCADE"
        ),
    )

    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    extra_fee_id = Column(String, primary_key=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class StudentServiceActivation(Base):
    __tablename__ = "student_service_activations"
    __table_args__ = (
        ForeignKeyConstraint(
            ["service_id", "year_id"], ["services.id", "services.year_id"], ondelete="CASCADE"
        ),
    )

    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    service_id = Column(String, primary_key=True)
    month = Column(String, primary_key=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(check_in("type", PaymentType), name="ck_payments_type"),
        Index("idx_payments_year_student", "year_id", "student_id"),
        Index("idx_payments_year_type", "year_id", "type"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False)
    class_id = Column(String, nullable=True)
    month = Column(String, nullable=True)
    item_id = Column(String, nullable=True)  # extra fee or service id, depending on type
    method = Column(String, nullable=True)
    amount = Column(Money, nullable=False)
    payment_date = Column(Date, server_default=text("CURRENT_DATE"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
