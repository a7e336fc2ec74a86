"""Razorpay client: order creation over the Orders REST API and local
checkout-signature verification (HMAC-SHA256 of ``"{order_id}|{payment_id}"``).
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass

import requests

from clubhub.config import settings
from clubhub.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class GatewayOrder:
    order_id: str
    amount: int  # minor units (paise)
    currency: str
    receipt: str


def compute_signature(key_secret: str, order_id: str, payment_id: str) -> str:
    message = f"{order_id}|{payment_id}"
    return hmac.new(key_secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class RazorpayGateway:
    def __init__(self, key_id: str, key_secret: str, api_url: str, timeout: float):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrder:
        """Create an order for ``amount`` minor units; raises UpstreamError on any failure."""
        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        try:
            response = requests.post(
                f"{self.api_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException:
            logger.exception("Razorpay order request failed (receipt %s)", receipt)
            raise UpstreamError("Payment gateway unavailable")

        if response.status_code != 200:
            logger.error(
                "Razorpay order creation rejected (receipt %s): %s %s",
                receipt, response.status_code, response.text,
            )
            raise UpstreamError("Payment order could not be created")

        data = response.json()
        logger.info("Razorpay order %s created for receipt %s", data.get("id"), receipt)
        return GatewayOrder(
            order_id=data["id"],
            amount=data.get("amount", amount),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = compute_signature(self.key_secret, order_id, payment_id)
        # compare_digest does not short-circuit on the first differing byte
        return hmac.compare_digest(expected.encode(), (signature or "").encode())


def get_payment_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_url=settings.RAZORPAY_API_URL,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )
