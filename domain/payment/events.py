"""
Razorpay notification kinds.

The reconciler handles exactly this closed set; any other tag is
acknowledged without touching storage.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class GatewayEventType(str, Enum):
    PAYMENT_CAPTURED = "payment.captured"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_AUTHORIZED = "payment.authorized"
    ORDER_PAID = "order.paid"
    REFUND_CREATED = "refund.created"
    REFUND_PROCESSED = "refund.processed"

    @classmethod
    def parse(cls, tag: Optional[str]) -> Optional["GatewayEventType"]:
        """Map a raw event tag onto a known kind, None if unsupported."""
        try:
            return cls(tag)
        except ValueError:
            return None
