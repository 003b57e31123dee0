import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from flarecare.api.deps import get_current_user_id, require_bearer_token, require_subscribe_config
from flarecare.core.config import ReminderSettings, get_settings
from flarecare.db.session import get_session_factory
from .repository import upsert_subscription
from .schemas import PushSubscriptionCreate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/subscribe")
async def subscribe(
    request: Request,
    token: str = Depends(require_bearer_token),
    settings: ReminderSettings = Depends(require_subscribe_config),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Register (or re-own) a browser push subscription for the signed-in user."""
    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    endpoint = body.get("endpoint")
    p256dh_key = body.get("p256dh_key")
    auth_key = body.get("auth_key")
    if not endpoint or not p256dh_key or not auth_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing endpoint, p256dh_key, or auth_key")

    user_id = get_current_user_id(token, settings)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    try:
        data = PushSubscriptionCreate(
            user_id=user_id,
            endpoint=endpoint,
            p256dh_key=p256dh_key,
            auth_key=auth_key,
            user_agent=body.get("user_agent") or None,
        )
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid subscription fields")
    db = session_factory()
    try:
        upsert_subscription(db, data)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ [Subscribe] Upsert failed for user {user_id}: {e!r}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    finally:
        db.close()

    logger.info(f"🔔 [Subscribe] Stored push subscription for user {user_id}")
    return {"success": True}


@router.get("/public-key")
def public_key(settings: ReminderSettings = Depends(get_settings)):
    if not settings.VAPID_PUBLIC_KEY:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="VAPID public key not configured")
    return {"public_key": settings.VAPID_PUBLIC_KEY}
