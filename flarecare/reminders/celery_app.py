from celery import Celery

from flarecare.core.config import settings


celery_app = Celery(
    "reminders",
    broker=settings.CELERY_BROKER_URL or "memory://",
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_ignore_result=True,
    include=["flarecare.reminders.tasks"],
)

# The interval must stay below the due-detection window or reminders can fall through
celery_app.conf.beat_schedule = {
    "send-appointment-reminders": {
        "task": "reminders.trigger_appointment_reminders",
        "schedule": settings.SCHEDULER_SCAN_INTERVAL_SECONDS,
    },
    "send-medication-reminders": {
        "task": "reminders.trigger_medication_reminders",
        "schedule": 60,  # medication times match to the minute
    },
}
