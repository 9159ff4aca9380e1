"""
Razorpay webhook signature verification.

Razorpay signs each webhook delivery with HMAC-SHA256 over the raw request
body using the webhook secret configured on the dashboard, and sends the hex
digest in the `X-Razorpay-Signature` header. Verification must run on the
exact bytes received; re-serialising parsed JSON changes the digest.
"""
from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from infrastructure.external.payments.exceptions import PaymentSignatureError


class RazorpayWebhookVerifier:
    provider = "razorpay"

    def __init__(self, secret: Optional[str]):
        self._secret = secret or ""

    def signature_for(self, body: bytes) -> str:
        """Hex HMAC-SHA256 of `body` under the configured secret."""
        if not self._secret:
            raise PaymentSignatureError("Webhook secret not configured", provider=self.provider)
        return hmac.new(self._secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def verify(self, body: bytes, signature: Optional[str]) -> bool:
        """
        True only when the header equals the hex digest byte for byte.

        Raises:
            PaymentSignatureError: no webhook secret configured
        """
        expected = self.signature_for(body)
        if not body or not signature:
            return False
        # 头部按 latin-1 解码，可能含非 ASCII 字符；按字节比较
        return hmac.compare_digest(
            expected.encode("ascii"),
            signature.encode("utf-8", "surrogatepass"),
        )
