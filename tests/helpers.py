from datetime import date, datetime, timezone
import threading

from pywebpush import WebPushException

from flarecare.models import Appointment, Medication, PushSubscription


NOW = datetime(2025, 5, 10, 8, 31, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.text = f"status {status_code}"


class FakeWebPush:
    """Stands in for pywebpush.webpush; fails per endpoint as configured."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self._lock = threading.Lock()

    def fail(self, endpoint, status_code_or_exc):
        self.failures[endpoint] = status_code_or_exc

    def __call__(self, subscription_info, data=None, vapid_private_key=None, vapid_claims=None,
                 ttl=0, timeout=None, **kwargs):
        with self._lock:
            self.calls.append({
                "endpoint": subscription_info["endpoint"],
                "keys": subscription_info["keys"],
                "data": data,
                "vapid_private_key": vapid_private_key,
                "vapid_claims": vapid_claims,
                "ttl": ttl,
                "timeout": timeout,
            })
        failure = self.failures.get(subscription_info["endpoint"])
        if isinstance(failure, int):
            raise WebPushException("Push failed", response=FakeResponse(failure))
        if isinstance(failure, Exception):
            raise failure
        return FakeResponse(201)

    def endpoints(self):
        return sorted(c["endpoint"] for c in self.calls)


def add_appointment(db, user_id="user-1", on=date(2025, 5, 10), at="09:00", minutes_before=30,
                    type="GP", sent_at=None):
    apt = Appointment(
        user_id=user_id,
        date=on,
        time=at,
        type=type,
        reminder_minutes_before=minutes_before,
        reminder_sent_at=sent_at,
    )
    db.add(apt)
    db.commit()
    return apt


def add_subscription(db, endpoint, user_id="user-1"):
    sub = PushSubscription(
        user_id=user_id,
        endpoint=endpoint,
        p256dh_key=f"p256dh-{endpoint}",
        auth_key=f"auth-{endpoint}",
    )
    db.add(sub)
    db.commit()
    return sub


def add_medication(db, name, user_id="user-1", time_of_day="08:31", enabled=True):
    med = Medication(user_id=user_id, name=name, time_of_day=time_of_day, reminders_enabled=enabled)
    db.add(med)
    db.commit()
    return med
