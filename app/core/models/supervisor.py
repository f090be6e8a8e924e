import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class Supervisor(Base):
    """
    School or industry supervisor. Industry supervisors are passive records.
    Never hard-deleted while assignments reference them; is_active is the soft switch.
    """

    __tablename__ = "supervisors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # External identity (token subject); null for supervisors without a login
    user_id = Column(UUID(as_uuid=True), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    supervisor_type = Column(String(20), nullable=False)  # school | industry
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
