from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional, Sequence
import logging

import requests
from pywebpush import WebPushException, webpush

from .metrics import push_delivered_total, push_failed_total
from .schemas import (
    DeliveryOutcome,
    DeliveryResult,
    DispatchResult,
    NotificationPayload,
    SubscriptionInfo,
    VapidConfig,
)

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = (404, 410)
DEFAULT_TTL_SECONDS = 60


def _short(endpoint: str) -> str:
    return f"{endpoint[:48]}..." if len(endpoint) > 48 else endpoint


def classify_status(status_code: Optional[int]) -> DeliveryOutcome:
    if status_code in GONE_STATUS_CODES:
        return DeliveryOutcome.GONE
    return DeliveryOutcome.FAILED


def send_notification(
    subscription: SubscriptionInfo,
    data: str,
    vapid: VapidConfig,
    ttl: int = DEFAULT_TTL_SECONDS,
    timeout: Optional[float] = None,
) -> DeliveryResult:
    """Send one signed push message and classify the outcome. Never raises."""
    try:
        webpush(
            subscription_info=subscription.to_webpush(),
            data=data,
            vapid_private_key=vapid.private_key,
            vapid_claims=vapid.claims(),
            ttl=ttl,
            timeout=timeout,
        )
    except WebPushException as e:
        # requests.Response is falsy for 4xx/5xx, so test against None
        status_code = e.response.status_code if e.response is not None else None
        outcome = classify_status(status_code)
        logger.warning(
            f"❌ [Push] Send failed | endpoint={_short(subscription.endpoint)} "
            f"status={status_code} outcome={outcome.value}"
        )
        push_failed_total.labels(outcome=outcome.value).inc()
        return DeliveryResult(
            endpoint=subscription.endpoint, outcome=outcome, status_code=status_code, error=str(e)
        )
    except requests.RequestException as e:
        logger.warning(f"❌ [Push] Network error | endpoint={_short(subscription.endpoint)} error={e!r}")
        push_failed_total.labels(outcome=DeliveryOutcome.FAILED.value).inc()
        return DeliveryResult(endpoint=subscription.endpoint, outcome=DeliveryOutcome.FAILED, error=repr(e))
    except Exception as e:
        # Malformed key material surfaces from the encryption layer
        logger.exception(f"❌ [Push] Unexpected error | endpoint={_short(subscription.endpoint)}")
        push_failed_total.labels(outcome=DeliveryOutcome.FAILED.value).inc()
        return DeliveryResult(endpoint=subscription.endpoint, outcome=DeliveryOutcome.FAILED, error=repr(e))

    push_delivered_total.inc()
    return DeliveryResult(endpoint=subscription.endpoint, outcome=DeliveryOutcome.DELIVERED)


def dispatch_to_subscriptions(
    payload: NotificationPayload,
    subscriptions: Sequence[SubscriptionInfo],
    vapid: VapidConfig,
    ttl: int = DEFAULT_TTL_SECONDS,
    timeout: Optional[float] = None,
    executor: Optional[Executor] = None,
) -> DispatchResult:
    """Fan one payload out to every subscription; sends are independent of each other."""
    if not subscriptions:
        return DispatchResult()

    data = payload.to_json()
    if executor is None:
        with ThreadPoolExecutor(max_workers=min(len(subscriptions), 8)) as pool:
            return dispatch_to_subscriptions(payload, subscriptions, vapid, ttl, timeout, executor=pool)

    futures = [
        executor.submit(send_notification, sub, data, vapid, ttl, timeout)
        for sub in subscriptions
    ]
    results: List[DeliveryResult] = [f.result() for f in futures]
    return DispatchResult(results=results)
