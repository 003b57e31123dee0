from datetime import datetime
from typing import Iterable
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .metrics import reminders_marked_total
from .repository import mark_reminder_sent

logger = logging.getLogger(__name__)


def mark_reminders_sent(db: Session, appointment_ids: Iterable[uuid.UUID], sent_at: datetime) -> int:
    """Write reminder_sent_at for every id, independent of delivery outcome.

    A failed write leaves the appointment eligible for the next run.
    """
    marked = 0
    for appointment_id in appointment_ids:
        try:
            marked += mark_reminder_sent(db, appointment_id, sent_at)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ [Store] Could not mark appointment {appointment_id} as sent: {e!r}")
    if marked:
        reminders_marked_total.inc(marked)
    return marked
