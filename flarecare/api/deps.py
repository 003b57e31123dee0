from typing import Optional
import hmac
import logging

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt

from flarecare.core.config import ReminderSettings, get_settings

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):] or None


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: ReminderSettings = Depends(get_settings),
) -> bool:
    """Reject the call unless it presents `Bearer <CRON_SECRET>`; an unset secret rejects everything."""
    secret = settings.CRON_SECRET
    presented = authorization or ""
    if not secret or not hmac.compare_digest(presented.encode("utf-8"), f"Bearer {secret}".encode("utf-8")):
        logger.warning("🔒 [Cron] Rejected invocation: missing or invalid bearer secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return True


def require_push_config(settings: ReminderSettings = Depends(get_settings)) -> ReminderSettings:
    missing = settings.missing_push_config()
    if missing:
        logger.error(f"❌ [Cron] Missing configuration: {', '.join(missing)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing env (store service credential or VAPID private key)",
        )
    return settings


def get_current_user_id(token: str, settings: ReminderSettings) -> Optional[str]:
    """Verify a user access token and return its subject, or None when it is not acceptable."""
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


def require_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid Authorization header")
    return token


def require_subscribe_config(settings: ReminderSettings = Depends(get_settings)) -> ReminderSettings:
    if not (settings.AUTH_JWT_SECRET and settings.STORE_URL and settings.STORE_SERVICE_KEY):
        logger.error("❌ [Subscribe] Missing AUTH_JWT_SECRET or store configuration")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server misconfiguration")
    return settings
