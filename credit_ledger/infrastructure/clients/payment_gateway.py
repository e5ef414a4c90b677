"""Gateway payment verification"""

import hashlib
import hmac
from typing import Protocol

from credit_ledger.config import settings


class PaymentVerifier(Protocol):
    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        ...


class HmacPaymentVerifier:
    """Checks the gateway's HMAC-SHA256 signature over ``order_id|payment_id``"""

    def __init__(self, key_secret: str | None = None):
        self.key_secret = key_secret if key_secret is not None else settings.gateway_key_secret

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        body = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.key_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.key_secret:
            return False
        return hmac.compare_digest(self.expected_signature(order_id, payment_id), signature)
