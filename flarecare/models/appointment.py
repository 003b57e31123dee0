from datetime import datetime
import uuid

from sqlalchemy import Column, Date, DateTime, Index, Integer, String, Text, Uuid

from flarecare.db.base import Base


class Appointment(Base):
    """Appointment row as written by the app; the engine only writes reminder_sent_at."""
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)

    date = Column(Date, nullable=True)
    time = Column(String, nullable=True)  # "HH:MM" wall-clock, optional
    type = Column(String, nullable=True)
    clinician_name = Column(String, nullable=True)
    location = Column(Text, nullable=True)

    reminder_minutes_before = Column(Integer, nullable=True)  # NULL = no reminder
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_appointments_reminder_pending", "reminder_sent_at", "reminder_minutes_before"),
    )
