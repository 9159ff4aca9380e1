"""
Factory for payment gateway adapters.
"""
from __future__ import annotations

from core.settings import payment_settings
from application.ports.payment_gateway import WebhookSignatureVerifier
from .razorpay_client import RazorpayWebhookVerifier


def get_webhook_verifier(secret: str | None = None) -> WebhookSignatureVerifier:
    return RazorpayWebhookVerifier(secret if secret is not None else payment_settings.razorpay.webhook_secret)


__all__ = ["RazorpayWebhookVerifier", "get_webhook_verifier"]
