"""Global (year-independent) people: students, guardians, teachers."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    text,
)

from ecole_manager.core.enums import ContactType, Gender, TeacherPaymentType, check_in
from ecole_manager.db.session import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (CheckConstraint(check_in("gender", Gender), name="ck_students_gender"),)

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    birth_date = Column(Date, nullable=True)
    birth_place = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    student_number = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class Guardian(Base):
    __tablename__ = "guardians"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    relationship = Column(String, nullable=True)  # free text: "mère", "oncle", ...
    address = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class StudentGuardian(Base):
    __tablename__ = "student_guardians"

    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    guardian_id = Column(String, ForeignKey("guardians.id", ondelete="CASCADE"), primary_key=True)
    is_primary = Column(Boolean, nullable=False, server_default=text("0"))


class Teacher(Base):
    __tablename__ = "teachers"
    __table_args__ = (
        CheckConstraint(check_in("payment_type", TeacherPaymentType), name="ck_teachers_payment_type"),
        CheckConstraint(check_in("contact_type", ContactType), name="ck_teachers_contact_type"),
    )

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    subject = Column(String, nullable=True)
    hire_date = Column(Date, nullable=True)
    payment_type = Column(String, nullable=False, server_default=text("'fixe'"))
    salary = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    hourly_rate = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    residence = Column(String, nullable=True)
    contact_type = Column(String, nullable=False, server_default=text("'telephone'"))
    years_experience = Column(Integer, nullable=False, server_default=text("0"))
    nationality = Column(String, nullable=True)
    emergency_contact = Column(String, nullable=True)
    emergency_phone = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
