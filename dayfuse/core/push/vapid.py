"""VAPID key checks and single-message Web Push delivery via pywebpush."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from dayfuse.configs import configs

logger = logging.getLogger(__name__)

# Raw sizes of a P-256 key pair in the URL-safe base64 form browsers expect
PUBLIC_KEY_BYTES = 65
PRIVATE_KEY_BYTES = 32


def _b64url_len(value: str) -> int | None:
    try:
        return len(base64.urlsafe_b64decode(value + "=" * (-len(value) % 4)))
    except (binascii.Error, ValueError):
        return None


def ensure_vapid_keys() -> bool:
    """Check that push is enabled and the configured key pair is well formed.

    Called once at startup (API lifespan and each Celery worker process);
    a ``False`` result leaves the relay running with Web Push switched off.
    """
    push = configs.Push
    if not push.Enable:
        logger.info("Web Push disabled by configuration")
        return False

    if not push.VapidPublicKey or not push.VapidPrivateKey:
        logger.warning("VAPID keys not configured, Web Push disabled")
        return False

    if _b64url_len(push.VapidPublicKey) != PUBLIC_KEY_BYTES or _b64url_len(push.VapidPrivateKey) != PRIVATE_KEY_BYTES:
        logger.warning("VAPID keys are not a URL-safe base64 P-256 key pair, Web Push disabled")
        return False

    logger.info(f"VAPID keys ready (public={push.VapidPublicKey[:20]}…)")
    return True


def get_vapid_public_key() -> str:
    return configs.Push.VapidPublicKey


def send_push(subscription_info: dict[str, Any], payload: dict[str, Any]) -> bool:
    """Deliver *payload* to one subscription.

    *subscription_info* is ``{"endpoint", "keys": {"p256dh", "auth"}}``.
    Returns ``False`` without contacting the push service when push is off;
    :class:`pywebpush.WebPushException` propagates so the caller can read
    the response status (404/410 mean the subscription is gone).
    """
    from pywebpush import webpush

    push = configs.Push
    if not push.Enable or not push.VapidPrivateKey or not push.VapidPublicKey:
        logger.debug("Web Push disabled or VAPID keys missing, skipping push")
        return False

    webpush(
        subscription_info=subscription_info,
        data=json.dumps(payload),
        vapid_private_key=push.VapidPrivateKey,
        vapid_claims={"sub": f"mailto:{push.VapidContactEmail}"},
        ttl=push.Ttl,
    )
    return True
