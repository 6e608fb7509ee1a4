"""Payment gateway collaborator.

Only one capability is consumed from the gateway: creating a remote payment
intent (a gateway "order") for the amount the server computed.  The HTTP
call is bounded by ``PAYMENT_GATEWAY_TIMEOUT``; any transport failure,
non-2xx answer or malformed body surfaces as ``PaymentGatewayError`` so the
caller can abort order creation before anything is persisted.

Usage::

    gateway = get_payment_gateway()
    intent = gateway.create_payment_intent(35000, "INR", receipt="HG000042")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from modules.payments.exceptions import PaymentGatewayError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    """Gateway-side object representing an expected incoming payment."""

    id: str
    amount: int
    currency: str
    receipt: str


class IPaymentGateway(ABC):
    @abstractmethod
    def create_payment_intent(
        self, amount_minor_units: int, currency: str, receipt: str
    ) -> PaymentIntent:
        """Create a remote payment intent.

        Raises:
            PaymentGatewayError: the gateway could not create the intent.
        """


class RazorpayGateway(IPaymentGateway):
    """Razorpay Orders API client over ``httpx``.

    ``client`` may be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise a short-lived client is opened per
    call.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.key_id = settings.RAZORPAY_KEY_ID if key_id is None else key_id
        self._key_secret = (
            settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        )
        self.base_url = base_url or settings.PAYMENT_GATEWAY_BASE_URL
        self.timeout = settings.PAYMENT_GATEWAY_TIMEOUT if timeout is None else timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def create_payment_intent(
        self, amount_minor_units: int, currency: str, receipt: str
    ) -> PaymentIntent:
        log = logger.bind(receipt=receipt, amount=amount_minor_units, currency=currency)
        if not self.is_configured:
            log.error("payment_gateway.not_configured")
            raise PaymentGatewayError("Payment gateway is not configured.")

        payload = {
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt,
        }
        try:
            response = self._post("/orders", payload)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            log.error("payment_gateway.timeout", timeout=self.timeout)
            raise PaymentGatewayError("Payment gateway timed out.") from exc
        except httpx.HTTPStatusError as exc:
            log.error(
                "payment_gateway.rejected",
                status_code=exc.response.status_code,
            )
            raise PaymentGatewayError(
                f"Payment gateway rejected the request ({exc.response.status_code})."
            ) from exc
        except httpx.HTTPError as exc:
            log.error("payment_gateway.unreachable", error=str(exc))
            raise PaymentGatewayError("Payment gateway is unreachable.") from exc
        except ValueError as exc:
            log.error("payment_gateway.malformed_response")
            raise PaymentGatewayError("Payment gateway returned an invalid body.") from exc

        intent_id = body.get("id") if isinstance(body, dict) else None
        if not intent_id:
            log.error("payment_gateway.missing_intent_id")
            raise PaymentGatewayError("Payment gateway returned no intent id.")

        log.info("payment_gateway.intent_created", gateway_order_id=intent_id)
        return PaymentIntent(
            id=intent_id,
            amount=int(body.get("amount", amount_minor_units)),
            currency=body.get("currency", currency),
            receipt=receipt,
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        auth = (self.key_id, self._key_secret)
        if self._client is not None:
            return self._client.post(path, json=payload, auth=auth)
        with httpx.Client(
            base_url=self.base_url, timeout=httpx.Timeout(self.timeout)
        ) as client:
            return client.post(path, json=payload, auth=auth)


def get_payment_gateway() -> IPaymentGateway:
    """Instantiate the gateway named by ``PAYMENT_GATEWAY_BACKEND``."""
    return import_string(settings.PAYMENT_GATEWAY_BACKEND)()
