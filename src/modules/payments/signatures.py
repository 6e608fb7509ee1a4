"""Gateway confirmation signatures.

The gateway signs ``"<gateway order id>|<gateway payment id>"`` with
HMAC-SHA256 keyed by the shared API secret and sends the hex digest.
Verification is purely local; no call to the gateway is needed.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


def _secret(secret: Optional[str]) -> str:
    secret = settings.RAZORPAY_KEY_SECRET if secret is None else secret
    if not secret:
        raise ImproperlyConfigured("RAZORPAY_KEY_SECRET is not configured.")
    return secret


def compute_signature(
    gateway_order_id: str, gateway_payment_id: str, secret: Optional[str] = None
) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(
        _secret(secret).encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    secret: Optional[str] = None,
) -> bool:
    """Constant-time comparison of ``signature`` with the expected digest."""
    if not signature:
        return False
    expected = compute_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(
        expected.encode("ascii"), signature.strip().lower().encode("utf-8")
    )
