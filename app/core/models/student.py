import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class Student(Base):
    """
    Student on industrial placement.
    school_supervisor_id / _name / _email are a write-through cache of the current
    session's school assignment; only the assignment service writes them.
    """

    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=True, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    matric_no = Column(String(50), nullable=False, unique=True)
    # Once finalized, matric_no can no longer be changed
    matric_finalized = Column(Boolean, nullable=False, default=False)
    department = Column(String(255), nullable=True)
    faculty = Column(String(255), nullable=True)

    organisation_name = Column(String(255), nullable=True)
    organisation_address = Column(Text, nullable=True)
    placement_start_date = Column(Date, nullable=True)

    school_supervisor_id = Column(
        UUID(as_uuid=True),
        ForeignKey("supervisors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    school_supervisor_name = Column(String(255), nullable=True)
    school_supervisor_email = Column(String(255), nullable=True)

    # Industry supervisor is data only, not a system actor
    industry_supervisor_name = Column(String(255), nullable=True)
    industry_supervisor_email = Column(String(255), nullable=True)
    industry_supervisor_phone = Column(String(50), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    locked = Column(Boolean, nullable=False, default=False)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    graded = Column(Boolean, nullable=False, default=False)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    final_score = Column(Float, nullable=True)
    final_grade = Column(String(2), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_supervisor = relationship("Supervisor", foreign_keys=[school_supervisor_id])
