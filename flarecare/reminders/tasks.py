from typing import Any, Dict
import logging

import requests

from .celery_app import celery_app
from .client import APPOINTMENT_REMINDERS_PATH, MEDICATION_REMINDERS_PATH, trigger_cron

logger = logging.getLogger(__name__)


def _trigger(path: str) -> Dict[str, Any]:
    try:
        summary = trigger_cron(path)
    except (requests.RequestException, RuntimeError) as e:
        # The next beat tick is the retry; the window covers the gap
        logger.error(f"❌ [Trigger] {path} failed: {e!r}")
        return {"sent": 0, "error": str(e)}
    logger.info(f"⏰ [Trigger] {path} -> {summary}")
    return summary


@celery_app.task(name="reminders.trigger_appointment_reminders")
def trigger_appointment_reminders_task() -> Dict[str, Any]:
    return _trigger(APPOINTMENT_REMINDERS_PATH)


@celery_app.task(name="reminders.trigger_medication_reminders")
def trigger_medication_reminders_task() -> Dict[str, Any]:
    return _trigger(MEDICATION_REMINDERS_PATH)
