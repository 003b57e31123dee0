"""Cron run orchestration: select -> group -> dispatch -> clean up -> mark."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flarecare.core.config import ReminderSettings
from flarecare.utils.timezone import get_zoneinfo, to_utc_aware, utc_now
from .dispatcher import dispatch_to_subscriptions
from .grouping import group_by_user, group_medications_by_user, to_due_reminder
from .lifecycle import remove_gone_subscriptions
from .metrics import cron_runs_total
from .repository import (
    list_medications_due_at,
    list_pending_appointment_reminders,
    list_subscriptions_for_users,
)
from .schemas import UserBatch, VapidConfig
from .selector import select_due_appointments
from .sent_marker import mark_reminders_sent

logger = logging.getLogger(__name__)

NO_CANDIDATES_MESSAGE = "No due appointment reminders or error"
NOTHING_IN_WINDOW_MESSAGE = "No reminders due in window"
NO_SUBSCRIPTIONS_MESSAGE = "No push subscriptions for these users"
NO_MEDICATIONS_MESSAGE = "No due medications or error"

SessionFactory = Callable[[], Session]


def _vapid(settings: ReminderSettings) -> VapidConfig:
    return VapidConfig(private_key=settings.VAPID_PRIVATE_KEY, subject=settings.VAPID_SUBJECT)


def _unique_user_ids(items) -> List[str]:
    return list(dict.fromkeys(str(i.user_id) for i in items))


def _deliver(
    db: Session,
    batches: List[UserBatch],
    settings: ReminderSettings,
    sent_at: Optional[datetime] = None,
) -> Dict[str, int]:
    """Notify users one at a time so earlier users are marked before later sends start."""
    vapid = _vapid(settings)
    totals = {"sent": 0, "failed": 0, "removed": 0, "marked": 0, "attempted": 0}
    with ThreadPoolExecutor(max_workers=max(1, settings.PUSH_MAX_WORKERS)) as pool:
        for batch in batches:
            result = dispatch_to_subscriptions(
                batch.payload,
                batch.subscriptions,
                vapid,
                ttl=settings.PUSH_TTL_SECONDS,
                timeout=settings.PUSH_TIMEOUT_SECONDS,
                executor=pool,
            )
            totals["attempted"] += len(batch.subscriptions)
            totals["sent"] += result.delivered
            totals["failed"] += result.failed
            totals["removed"] += remove_gone_subscriptions(db, result.gone_endpoints)
            if sent_at is not None:
                totals["marked"] += mark_reminders_sent(db, batch.appointment_ids, sent_at)
    return totals


def run_appointment_reminders(
    session_factory: SessionFactory,
    settings: ReminderSettings,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = to_utc_aware(now) if now else utc_now()
    tz = get_zoneinfo(settings.TIMEZONE)
    window = timedelta(minutes=settings.REMINDER_WINDOW_MINUTES)

    db = session_factory()
    try:
        try:
            candidates = list_pending_appointment_reminders(db)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ [Store] Reading pending appointments failed: {e!r}")
            candidates = []
        if not candidates:
            cron_runs_total.labels(kind="appointments", outcome="no_candidates").inc()
            return {"sent": 0, "message": NO_CANDIDATES_MESSAGE}

        due = select_due_appointments(candidates, now, tz, window)
        if not due:
            cron_runs_total.labels(kind="appointments", outcome="nothing_due").inc()
            return {"sent": 0, "message": NOTHING_IN_WINDOW_MESSAGE}

        try:
            subscriptions = list_subscriptions_for_users(db, _unique_user_ids(due))
        except SQLAlchemyError as e:
            # Leave the appointments unmarked so the next run tries again
            db.rollback()
            logger.error(f"❌ [Store] Reading push subscriptions failed: {e!r}")
            cron_runs_total.labels(kind="appointments", outcome="no_subscriptions").inc()
            return {"sent": 0, "message": NO_SUBSCRIPTIONS_MESSAGE}

        batches = group_by_user([to_due_reminder(a) for a in due], subscriptions)
        totals = _deliver(db, batches, settings, sent_at=now)
        logger.info(
            f"✅ [Cron] Appointment reminders | due={len(due)} users={len(batches)} "
            f"sent={totals['sent']} failed={totals['failed']} removed={totals['removed']} "
            f"marked={totals['marked']}"
        )
        if not subscriptions:
            cron_runs_total.labels(kind="appointments", outcome="no_subscriptions").inc()
            return {"sent": 0, "message": NO_SUBSCRIPTIONS_MESSAGE}
        cron_runs_total.labels(kind="appointments", outcome="delivered").inc()
        return {"sent": totals["sent"], "appointments": len(due)}
    finally:
        db.close()


def run_medication_reminders(
    session_factory: SessionFactory,
    settings: ReminderSettings,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = to_utc_aware(now) if now else utc_now()
    current_time = now.astimezone(get_zoneinfo(settings.TIMEZONE)).strftime("%H:%M")

    db = session_factory()
    try:
        try:
            medications = list_medications_due_at(db, current_time)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ [Store] Reading due medications failed: {e!r}")
            medications = []
        if not medications:
            cron_runs_total.labels(kind="medications", outcome="no_candidates").inc()
            return {"sent": 0, "message": NO_MEDICATIONS_MESSAGE}

        try:
            subscriptions = list_subscriptions_for_users(db, _unique_user_ids(medications))
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ [Store] Reading push subscriptions failed: {e!r}")
            subscriptions = []
        if not subscriptions:
            cron_runs_total.labels(kind="medications", outcome="no_subscriptions").inc()
            return {"sent": 0, "message": NO_SUBSCRIPTIONS_MESSAGE}

        batches = group_medications_by_user(medications, subscriptions)
        totals = _deliver(db, batches, settings)
        logger.info(
            f"✅ [Cron] Medication reminders at {current_time} | meds={len(medications)} "
            f"sent={totals['sent']} failed={totals['failed']} removed={totals['removed']}"
        )
        cron_runs_total.labels(kind="medications", outcome="delivered").inc()
        return {"sent": totals["sent"], "total": totals["attempted"]}
    finally:
        db.close()
