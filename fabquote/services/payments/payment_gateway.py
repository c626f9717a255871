"""
Payment gateway collaborators.

Checkout happens in the customer's browser; the gateway hands the browser a
payment id which is forwarded to the settlement endpoint. A verifier decides
how much to trust that id before the quotation is marked Paid.
"""
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx

from fabquote.core import config

logger = logging.getLogger(__name__)


class PaymentVerificationError(Exception):
    """The gateway does not recognise the payment as a settled charge for this order."""


class PaymentGatewayError(Exception):
    """The gateway could not be reached or answered with a server error."""


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentVerifier(ABC):
    @abstractmethod
    async def verify(self, payment_reference: str, amount_minor: int, currency: str) -> None:
        ...


class PassThroughVerifier(PaymentVerifier):
    """Accepts any client-reported payment id."""

    async def verify(self, payment_reference, amount_minor, currency):
        logger.debug(
            "Payment reference accepted without server-side verification",
            extra={"payment_reference": payment_reference},
        )


class RazorpayVerifier(PaymentVerifier):
    BASE_URL = "https://api.razorpay.com/v1"
    SETTLED_STATES = {"authorized", "captured"}

    def __init__(self, key_id: str, key_secret: str, timeout: float = 10.0):
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout

    async def verify(self, payment_reference, amount_minor, currency):
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.BASE_URL}/payments/{payment_reference}",
                    auth=(self.key_id, self.key_secret),
                )
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"Razorpay request failed: {e}") from e

        if response.status_code >= 500:
            raise PaymentGatewayError(f"Razorpay returned {response.status_code}")
        if response.status_code >= 400:
            raise PaymentVerificationError("Payment not found at gateway")

        payment = response.json()

        if payment.get("status") not in self.SETTLED_STATES:
            raise PaymentVerificationError(f"Payment is {payment.get('status')}")

        if payment.get("amount") != amount_minor or payment.get("currency") != currency:
            logger.warning(
                "Payment amount mismatch",
                extra={
                    "payment_reference": payment_reference,
                    "expected": (amount_minor, currency),
                    "actual": (payment.get("amount"), payment.get("currency")),
                },
            )
            raise PaymentVerificationError("Payment amount does not match the quotation")


_verifier: Optional[PaymentVerifier] = None


def get_payment_verifier() -> PaymentVerifier:
    global _verifier
    if _verifier is None:
        if config.PAYMENT_VERIFY == "razorpay":
            _verifier = RazorpayVerifier(
                config.RAZORPAY_KEY_ID,
                config.RAZORPAY_KEY_SECRET,
                timeout=config.EXTERNAL_HTTP_TIMEOUT_SECONDS,
            )
        else:
            _verifier = PassThroughVerifier()
    return _verifier
