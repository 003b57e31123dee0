"""
Schemas shared by the reminder engine and its HTTP surface
"""
from enum import Enum
from typing import List, Optional
import json
import uuid

from pydantic import BaseModel, ConfigDict, Field


APPOINTMENT_TITLE = "📅 Upcoming appointment"
APPOINTMENT_TAG = "flarecare-appointment-reminder"
MEDICATION_TITLE = "💊 Medication Reminder"
MEDICATION_TAG = "flarecare-reminder"


class DueReminder(BaseModel):
    """One appointment whose reminder is due in the current run (never persisted)."""
    appointment_id: uuid.UUID
    user_id: str
    text: str


class SubscriptionInfo(BaseModel):
    """Detached copy of a push subscription row, safe to hand to worker threads."""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    endpoint: str
    p256dh_key: str
    auth_key: str

    def to_webpush(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh_key, "auth": self.auth_key},
        }


class NotificationPayload(BaseModel):
    title: str
    body: str
    tag: str

    def to_json(self) -> str:
        return json.dumps({"title": self.title, "body": self.body, "tag": self.tag})


class UserBatch(BaseModel):
    """Everything needed to notify one user in one run."""
    user_id: str
    reminders: List[DueReminder] = Field(default_factory=list)
    subscriptions: List[SubscriptionInfo] = Field(default_factory=list)
    payload: NotificationPayload

    @property
    def appointment_ids(self) -> List[uuid.UUID]:
        return [r.appointment_id for r in self.reminders]


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    GONE = "gone"      # endpoint permanently invalid (404/410)
    FAILED = "failed"  # anything else, dropped for this run


class DeliveryResult(BaseModel):
    endpoint: str
    outcome: DeliveryOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None


class DispatchResult(BaseModel):
    results: List[DeliveryResult] = Field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for r in self.results if r.outcome == DeliveryOutcome.DELIVERED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.outcome != DeliveryOutcome.DELIVERED)

    @property
    def gone_endpoints(self) -> List[str]:
        return [r.endpoint for r in self.results if r.outcome == DeliveryOutcome.GONE]


class VapidConfig(BaseModel):
    private_key: str
    subject: str

    def claims(self) -> dict:
        # pywebpush writes "aud"/"exp" into the claims it is given
        return {"sub": self.subject}


class PushSubscriptionCreate(BaseModel):
    user_id: str
    endpoint: str
    p256dh_key: str
    auth_key: str
    user_agent: Optional[str] = None
