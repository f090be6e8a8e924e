"""Weekly logbook entry: one row per (student, week_number)."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.enums import WeekStatus
from app.db.session import Base


DAY_FIELDS = (
    "monday_activity",
    "tuesday_activity",
    "wednesday_activity",
    "thursday_activity",
    "friday_activity",
    "saturday_activity",
)


class Week(Base):
    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("student_id", "week_number", name="uq_week_student_week_number"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)

    monday_activity = Column(Text, nullable=True)
    tuesday_activity = Column(Text, nullable=True)
    wednesday_activity = Column(Text, nullable=True)
    thursday_activity = Column(Text, nullable=True)
    friday_activity = Column(Text, nullable=True)
    saturday_activity = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    image_urls = Column(JSON, nullable=False, default=list)

    # Derived from the student's placement start; unset when that is unknown
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    status = Column(String(20), nullable=False, default=WeekStatus.SUBMITTED.value)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(UUID(as_uuid=True), ForeignKey("supervisors.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    review_comment = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    grade = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
    reviewer = relationship("Supervisor", foreign_keys=[reviewed_by])
