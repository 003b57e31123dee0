from datetime import datetime
import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid

from flarecare.db.base import Base


class PushSubscription(Base):
    """Web Push subscription of one browser/device. The endpoint is the natural key."""
    __tablename__ = "push_subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    endpoint = Column(Text, nullable=False, unique=True)
    p256dh_key = Column(String, nullable=False)
    auth_key = Column(String, nullable=False)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
