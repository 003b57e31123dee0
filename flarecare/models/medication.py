import uuid

from sqlalchemy import Boolean, Column, String, Uuid

from flarecare.db.base import Base


class Medication(Base):
    __tablename__ = "medications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    time_of_day = Column(String, nullable=True, index=True)  # "HH:MM"
    reminders_enabled = Column(Boolean, nullable=False, default=False)
