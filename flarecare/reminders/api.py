from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import sessionmaker

from flarecare.api.deps import require_push_config, verify_cron_secret
from flarecare.core.config import ReminderSettings
from flarecare.db.session import get_session_factory
from .engine import run_appointment_reminders, run_medication_reminders


# Auth is checked before configuration, and both before any store access
router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.post("/send-appointment-reminders")
def send_appointment_reminders(
    settings: ReminderSettings = Depends(require_push_config),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Dict[str, Any]:
    return run_appointment_reminders(session_factory, settings)


@router.post("/send-reminders")
def send_medication_reminders(
    settings: ReminderSettings = Depends(require_push_config),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Dict[str, Any]:
    return run_medication_reminders(session_factory, settings)
