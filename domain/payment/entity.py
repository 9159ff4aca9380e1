"""
支付领域实体 - 支付记录聚合根
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from enum import Enum

from domain.common.exceptions import DomainValidationException


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    CREATED = "created"        # 已创建（网关订单已生成）
    ATTEMPTED = "attempted"    # 已授权，未捕获
    COMPLETED = "completed"    # 已捕获
    FAILED = "failed"          # 支付失败
    REFUNDED = "refunded"      # 已退款


class PaymentMethod(str, Enum):
    CARD = "card"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    UPI = "upi"
    OTHER = "other"


class RefundStatus(str, Enum):
    """退款状态枚举"""
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


# 允许的状态转换；未列出的（含自环）均为空操作
_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.CREATED: frozenset({
        PaymentStatus.ATTEMPTED,
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
    }),
    PaymentStatus.ATTEMPTED: frozenset({
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
    }),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PaymentRecord:
    """
    支付记录聚合根 - 跟随网关通知推进生命周期

    业务规则：
    1. 网关订单号（gateway_order_id）唯一且必填
    2. 金额不能为负数
    3. 状态转换遵循状态机；不允许的转换是空操作，不会抛错
    4. completed 永远不会回退为 attempted；failed 与 refunded 为终态
    5. 退款信息只能由 refund.created 写入，由同一退款ID的 refund.processed 完结
    """

    id: Optional[int]
    gateway_order_id: str
    amount: Decimal
    currency: str = "INR"
    status: PaymentStatus = PaymentStatus.CREATED
    order_id: Optional[int] = None
    customer_id: Optional[int] = None
    gateway_payment_id: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.OTHER
    failure_reason: Optional[str] = None

    # 退款相关
    refund_id: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_status: Optional[RefundStatus] = None

    # 时间戳
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    webhook_processed_at: Optional[datetime] = None

    metadata: dict = field(default_factory=dict)
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.gateway_order_id:
            raise DomainValidationException(
                "gateway_order_id is required",
                field="gateway_order_id",
            )
        if self.amount < 0:
            raise DomainValidationException(
                f"Payment amount cannot be negative: {self.amount}",
                field="amount",
            )
        self.status = PaymentStatus(self.status)
        self.payment_method = PaymentMethod(self.payment_method)
        if self.refund_status is not None:
            self.refund_status = RefundStatus(self.refund_status)
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)
        self.paid_at = ensure_utc(self.paid_at)
        self.refunded_at = ensure_utc(self.refunded_at)
        self.webhook_processed_at = ensure_utc(self.webhook_processed_at)
        if self.metadata is None:
            self.metadata = {}

    def can_transition_to(self, target: PaymentStatus) -> bool:
        return target in _TRANSITIONS[self.status]

    def _apply_gateway_fields(self, gateway_payment_id: Optional[str], method: Optional[str]) -> None:
        if gateway_payment_id:
            self.gateway_payment_id = gateway_payment_id
        if method:
            self.payment_method = PaymentMethod(method)

    def mark_attempted(self, gateway_payment_id: Optional[str] = None, method: Optional[str] = None) -> bool:
        """网关已授权但尚未捕获"""
        if not self.can_transition_to(PaymentStatus.ATTEMPTED):
            return False
        self._apply_gateway_fields(gateway_payment_id, method)
        self.status = PaymentStatus.ATTEMPTED
        self.updated_at = _utcnow()
        return True

    def mark_completed(
        self,
        gateway_payment_id: Optional[str] = None,
        method: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> bool:
        """标记支付已捕获"""
        if not self.can_transition_to(PaymentStatus.COMPLETED):
            return False
        self._apply_gateway_fields(gateway_payment_id, method)
        self.status = PaymentStatus.COMPLETED
        self.paid_at = ensure_utc(paid_at) or _utcnow()
        self.failure_reason = None
        self.updated_at = _utcnow()
        return True

    def mark_failed(
        self,
        gateway_payment_id: Optional[str] = None,
        method: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> bool:
        if not self.can_transition_to(PaymentStatus.FAILED):
            return False
        self._apply_gateway_fields(gateway_payment_id, method)
        self.status = PaymentStatus.FAILED
        self.failure_reason = reason
        self.updated_at = _utcnow()
        return True

    def record_refund(self, refund_id: str, amount: Decimal) -> None:
        """
        记录网关创建的退款

        同一支付上的后续 refund.created 直接覆盖（后写为准，不累加）
        """
        if not refund_id:
            raise DomainValidationException("refund_id is required", field="refund_id")
        if amount < 0:
            raise DomainValidationException(
                f"Refund amount cannot be negative: {amount}",
                field="refund_amount",
            )
        self.refund_id = refund_id
        self.refund_amount = amount
        self.refund_status = RefundStatus.PENDING
        self.updated_at = _utcnow()

    def finalize_refund(self, refund_id: str, refunded_at: Optional[datetime] = None) -> bool:
        """
        完结退款

        Returns:
            支付状态是否推进到 refunded
        """
        if not self.refund_id or self.refund_id != refund_id:
            raise DomainValidationException(
                f"Refund {refund_id} is not recorded on this payment",
                field="refund_id",
            )
        self.refund_status = RefundStatus.PROCESSED
        if self.refunded_at is None:
            self.refunded_at = ensure_utc(refunded_at) or _utcnow()
        self.updated_at = _utcnow()
        if not self.can_transition_to(PaymentStatus.REFUNDED):
            return False
        self.status = PaymentStatus.REFUNDED
        return True

    def merge_metadata(self, **fields: Any) -> None:
        """合并元数据：保留已有键，冲突时新值覆盖"""
        self.metadata = {**(self.metadata or {}), **fields}
        self.updated_at = _utcnow()

    def touch_webhook(self, processed_at: Optional[datetime] = None) -> datetime:
        self.webhook_processed_at = ensure_utc(processed_at) or _utcnow()
        return self.webhook_processed_at

    def is_successful(self) -> bool:
        return self.status == PaymentStatus.COMPLETED and bool(self.gateway_payment_id)

    def can_be_refunded(self) -> bool:
        return self.status == PaymentStatus.COMPLETED and not self.refund_id
