from typing import Iterable
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .metrics import subscriptions_removed_total
from .repository import delete_subscription

logger = logging.getLogger(__name__)


def remove_gone_subscriptions(db: Session, endpoints: Iterable[str]) -> int:
    """Delete subscriptions the push service reported as permanently gone.

    Already-deleted endpoints are not an error. A failed delete is logged and
    retried naturally on the next run that hits the same 404/410.
    """
    removed = 0
    for endpoint in endpoints:
        try:
            rows = delete_subscription(db, endpoint)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ [Store] Could not delete subscription {endpoint[:48]}: {e!r}")
            continue
        if rows:
            removed += rows
            subscriptions_removed_total.inc(rows)
            logger.info(f"🧹 [Push] Removed stale subscription {endpoint[:48]}")
    return removed
