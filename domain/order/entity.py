"""
订单领域实体 - 仅随支付状态变化而更新
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.payment.entity import ensure_utc


class OrderPaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAYMENT_FAILED = "payment_failed"
    REFUNDED = "refunded"


@dataclass
class OrderRecord:
    id: Optional[int]
    customer_id: Optional[int] = None
    payment_status: OrderPaymentStatus = OrderPaymentStatus.UNPAID
    status: OrderStatus = OrderStatus.PENDING
    total_amount: Optional[Decimal] = None
    currency: str = "INR"
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.payment_status = OrderPaymentStatus(self.payment_status)
        self.status = OrderStatus(self.status)
        self.paid_at = ensure_utc(self.paid_at)
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    def mark_paid(self, paid_at: Optional[datetime] = None) -> None:
        self.payment_status = OrderPaymentStatus.PAID
        self.status = OrderStatus.CONFIRMED
        self.paid_at = ensure_utc(paid_at) or datetime.now(timezone.utc)
        self.updated_at = datetime.now(timezone.utc)

    def mark_payment_failed(self) -> None:
        self.payment_status = OrderPaymentStatus.FAILED
        self.status = OrderStatus.PAYMENT_FAILED
        self.updated_at = datetime.now(timezone.utc)

    def mark_refunded(self) -> None:
        self.payment_status = OrderPaymentStatus.REFUNDED
        self.status = OrderStatus.REFUNDED
        self.updated_at = datetime.now(timezone.utc)
