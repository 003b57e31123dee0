from datetime import datetime
from typing import Iterable, List, Optional
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flarecare.models import Appointment, Medication, PushSubscription
from .schemas import PushSubscriptionCreate


MEDICATION_TRACKING_PLACEHOLDER = "Medication Tracking"


def list_pending_appointment_reminders(db: Session) -> List[Appointment]:
    """Appointments that asked for a reminder and have not been processed yet."""
    stmt = (
        select(Appointment)
        .where(Appointment.reminder_sent_at.is_(None))
        .where(Appointment.reminder_minutes_before.is_not(None))
        .order_by(Appointment.date.asc(), Appointment.time.asc())
    )
    return list(db.execute(stmt).scalars())


def list_subscriptions_for_users(db: Session, user_ids: Iterable[str]) -> List[PushSubscription]:
    ids = list(user_ids)
    if not ids:
        return []
    stmt = select(PushSubscription).where(PushSubscription.user_id.in_(ids))
    return list(db.execute(stmt).scalars())


def list_medications_due_at(db: Session, time_of_day: str) -> List[Medication]:
    stmt = (
        select(Medication)
        .where(Medication.reminders_enabled.is_(True))
        .where(Medication.time_of_day == time_of_day)
        .where(Medication.name != MEDICATION_TRACKING_PLACEHOLDER)
    )
    return list(db.execute(stmt).scalars())


def mark_reminder_sent(db: Session, appointment_id: uuid.UUID, sent_at: datetime) -> int:
    """Set reminder_sent_at once; a row that already carries a marker is left as is."""
    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id)
        .where(Appointment.reminder_sent_at.is_(None))
        .values(reminder_sent_at=sent_at)
    )
    db.commit()
    return result.rowcount


def delete_subscription(db: Session, endpoint: str) -> int:
    """Delete by endpoint. Returns rows removed (0 when already gone)."""
    result = db.execute(delete(PushSubscription).where(PushSubscription.endpoint == endpoint))
    db.commit()
    return result.rowcount


def get_subscription(db: Session, endpoint: str) -> Optional[PushSubscription]:
    return db.execute(
        select(PushSubscription).where(PushSubscription.endpoint == endpoint)
    ).scalar_one_or_none()


def _update_subscription(db: Session, existing: PushSubscription, data: PushSubscriptionCreate) -> PushSubscription:
    existing.user_id = data.user_id
    existing.p256dh_key = data.p256dh_key
    existing.auth_key = data.auth_key
    existing.user_agent = data.user_agent
    existing.updated_at = datetime.utcnow()
    db.add(existing)
    db.commit()
    db.refresh(existing)
    return existing


def upsert_subscription(db: Session, data: PushSubscriptionCreate) -> PushSubscription:
    """Insert or update keyed on endpoint.

    A concurrent registration of the same endpoint that wins the insert turns
    this call into an update of that row.
    """
    existing = get_subscription(db, data.endpoint)
    if existing:
        return _update_subscription(db, existing, data)
    sub = PushSubscription(
        user_id=data.user_id,
        endpoint=data.endpoint,
        p256dh_key=data.p256dh_key,
        auth_key=data.auth_key,
        user_agent=data.user_agent,
    )
    db.add(sub)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_subscription(db, data.endpoint)
        if existing is None:
            raise
        return _update_subscription(db, existing, data)
    db.refresh(sub)
    return sub
