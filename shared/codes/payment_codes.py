"""
Payment specific codes and Razorpay value normalisation.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Payment resources (201xx)
    PAYMENT_NOT_FOUND = 20101

    # Gateway errors (6xxxx)
    SIGNATURE_ERROR = 60002


# Razorpay `method` values we store as-is; anything else (emi, paylater,
# cardless_emi, ...) is recorded as "other".
RAZORPAY_METHODS = {"card", "netbanking", "wallet", "upi"}


def normalize_payment_method(method: str | None) -> str | None:
    if not method:
        return None
    value = method.strip().lower()
    return value if value in RAZORPAY_METHODS else "other"
