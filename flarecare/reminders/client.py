from typing import Any, Dict, Optional

import requests

from flarecare.core.config import ReminderSettings, settings as default_settings

APPOINTMENT_REMINDERS_PATH = "/api/cron/send-appointment-reminders"
MEDICATION_REMINDERS_PATH = "/api/cron/send-reminders"


def _resolve_base_url(settings: ReminderSettings) -> str:
    """Base URL of the reminder service. Raises RuntimeError if not configured."""
    if not settings.SERVICE_URL:
        raise RuntimeError("FLARECARE_SERVICE_URL not configured")
    return settings.SERVICE_URL.rstrip("/")


def _build_headers(settings: ReminderSettings) -> Dict[str, str]:
    if not settings.CRON_SECRET:
        raise RuntimeError("FLARECARE_CRON_SECRET not configured")
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.CRON_SECRET}",
    }


def trigger_cron(
    path: str,
    settings: Optional[ReminderSettings] = None,
    timeout: int = 60,
) -> Dict[str, Any]:
    """POST to a cron endpoint of the reminder service and return its JSON summary."""
    settings = settings or default_settings
    url = f"{_resolve_base_url(settings)}{path}"
    r = requests.post(url, headers=_build_headers(settings), timeout=timeout)
    r.raise_for_status()
    return r.json()
