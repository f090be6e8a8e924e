import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class AcademicSession(Base):
    """
    Placement cycle (e.g. "2025/2026"). Scopes supervisor assignments and reporting.
    Only one row may have is_current = true; the partial unique index backs the
    clear-then-set done by the service.
    """

    __tablename__ = "academic_sessions"
    __table_args__ = (
        Index(
            "uq_academic_sessions_single_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current = true"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)  # e.g. "2025/2026"
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
