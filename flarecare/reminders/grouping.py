from datetime import date
from typing import Dict, Iterable, List, Sequence

from flarecare.models import Appointment, PushSubscription
from .schemas import (
    APPOINTMENT_TAG,
    APPOINTMENT_TITLE,
    MEDICATION_TAG,
    MEDICATION_TITLE,
    DueReminder,
    NotificationPayload,
    SubscriptionInfo,
    UserBatch,
)


def render_appointment(apt: Appointment) -> str:
    """'<type> <DD/MM/YYYY> <time>' with missing parts dropped."""
    raw_date = apt.date
    if isinstance(raw_date, str):
        try:
            raw_date = date.fromisoformat(raw_date)
        except ValueError:
            raw_date = None
    date_str = raw_date.strftime("%d/%m/%Y") if isinstance(raw_date, date) else ""
    type_str = apt.type or "Appointment"
    time_str = f" {apt.time}" if apt.time else ""
    return f"{type_str} {date_str}{time_str}".strip()


def to_due_reminder(apt: Appointment) -> DueReminder:
    return DueReminder(appointment_id=apt.id, user_id=str(apt.user_id), text=render_appointment(apt))


def merge_body(texts: Sequence[str]) -> str:
    if len(texts) == 1:
        return texts[0]
    return "; ".join(texts)


def group_by_user(
    reminders: Iterable[DueReminder],
    subscriptions: Iterable[PushSubscription],
) -> List[UserBatch]:
    """One batch per user with due reminders, in first-seen order.

    Users without subscriptions still get a batch so their reminders are marked.
    """
    by_user: Dict[str, List[DueReminder]] = {}
    for reminder in reminders:
        by_user.setdefault(reminder.user_id, []).append(reminder)

    subs_by_user: Dict[str, List[SubscriptionInfo]] = {}
    for sub in subscriptions:
        info = SubscriptionInfo.model_validate(sub)
        subs_by_user.setdefault(info.user_id, []).append(info)

    return [
        UserBatch(
            user_id=user_id,
            reminders=user_reminders,
            subscriptions=subs_by_user.get(user_id, []),
            payload=NotificationPayload(
                title=APPOINTMENT_TITLE,
                body=merge_body([r.text for r in user_reminders]),
                tag=APPOINTMENT_TAG,
            ),
        )
        for user_id, user_reminders in by_user.items()
    ]


def group_medications_by_user(
    medications: Iterable,
    subscriptions: Iterable[PushSubscription],
) -> List[UserBatch]:
    """One 'Time to take: ...' batch per user, medication names in input order."""
    names_by_user: Dict[str, List[str]] = {}
    for med in medications:
        names_by_user.setdefault(str(med.user_id), []).append(med.name)

    subs_by_user: Dict[str, List[SubscriptionInfo]] = {}
    for sub in subscriptions:
        info = SubscriptionInfo.model_validate(sub)
        subs_by_user.setdefault(info.user_id, []).append(info)

    return [
        UserBatch(
            user_id=user_id,
            subscriptions=subs_by_user.get(user_id, []),
            payload=NotificationPayload(
                title=MEDICATION_TITLE,
                body=f"Time to take: {', '.join(names)}",
                tag=MEDICATION_TAG,
            ),
        )
        for user_id, names in names_by_user.items()
    ]
