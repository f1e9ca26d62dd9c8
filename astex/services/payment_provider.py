"""
Payment-order provider client (Razorpay Orders API).

Only order minting is used: the provider returns an order id that the
checkout widget and the settlement webhook refer to.
"""

from typing import Any, Dict, Optional

import requests
from loguru import logger

from astex.core.config import settings
from astex.core.errors import PaymentProviderError


class RazorpayClient:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_order(self, amount: int, currency: str, notes: Dict[str, Any]) -> Dict[str, Any]:
        """Mint a payment order for ``amount`` minor units"""
        if not self.key_id or not self.key_secret:
            raise PaymentProviderError("Payment provider credentials are not configured")

        try:
            response = self.session.post(
                f"{self.base_url}/orders",
                json={"amount": amount, "currency": currency, "notes": notes},
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Razorpay request failed: {e}")
            raise PaymentProviderError("Payment provider unreachable")

        if response.status_code >= 400:
            logger.error(f"Razorpay rejected order: {response.status_code} {response.text[:200]}")
            raise PaymentProviderError(f"Payment provider returned {response.status_code}")

        try:
            order = response.json()
        except ValueError:
            raise PaymentProviderError("Payment provider returned invalid JSON")

        if not order.get("id"):
            raise PaymentProviderError("Payment provider response has no order id")
        return order


def get_payment_provider() -> RazorpayClient:
    return RazorpayClient(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
    )
