"""Student/supervisor binding per session and role type. At most one row per (student, session, type)."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class SupervisorAssignment(Base):
    __tablename__ = "supervisor_assignments"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "session_id", "assignment_type",
            name="uq_supervisor_assignment_student_session_type",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    supervisor_id = Column(
        UUID(as_uuid=True),
        ForeignKey("supervisors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    session_id = Column(
        UUID(as_uuid=True),
        ForeignKey("academic_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignment_type = Column(String(20), nullable=False)  # school | industry
    assigned_by = Column(UUID(as_uuid=True), nullable=True)  # admin user id; null for automatic
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
    supervisor = relationship("Supervisor", foreign_keys=[supervisor_id])
    session = relationship("AcademicSession")
