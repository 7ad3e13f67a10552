from sqlalchemy import Boolean, Column, Date, DateTime, String, text

from ecole_manager.db.session import Base


class AcademicYear(Base):
    """
    Partition key for all per-year data. The open year (closed = false) with the
    latest start date is the current one. Closing never deletes; deleting a year
    cascades to every row scoped to it.
    """

    __tablename__ = "academic_years"

    id = Column(String, primary_key=True)  # e.g. "2025-2026"
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    closed = Column(Boolean, nullable=False, server_default=text("0"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
