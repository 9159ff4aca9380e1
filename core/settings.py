"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings so gateway credentials load from their
own env keys (RAZORPAY__*, WEBHOOK__*).
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class WebhookSettings(BaseModel):
    ip_allowlist: list[str] | None = None  # Optional IPs/CIDRs allowed to post webhooks


class RazorpaySettings(BaseModel):
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    signature_header: str = "X-Razorpay-Signature"


class PaymentSettings(BaseSettings):
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
