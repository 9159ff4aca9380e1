"""
Gateway errors mapped onto the unified BusinessException envelope.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentSignatureError(BusinessException):
    """Webhook signature cannot be checked: no webhook secret configured."""

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.SIGNATURE_ERROR,
            message=message,
            error_type="PaymentSignatureError",
            details={"provider": provider, **(details or {})},
        )
