"""
Payment DTOs (Pydantic v2) used at application boundaries.

Gateway entities mirror the Razorpay webhook payload. Only the fields the
reconciler reads are declared; everything else is kept via `extra="allow"` so
the raw entity can be stored as diagnostic metadata.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict

from domain.payment.entity import PaymentRecord


_CENT = Decimal("0.01")


def minor_to_major(amount: Optional[int]) -> Optional[Decimal]:
    """Convert paise (minor units) into rupees, 2 dp."""
    if amount is None:
        return None
    return (Decimal(amount) / 100).quantize(_CENT)


class _GatewayEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    def raw(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RazorpayPaymentEntity(_GatewayEntity):
    id: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    method: Optional[str] = None
    bank: Optional[str] = None
    wallet: Optional[str] = None
    vpa: Optional[str] = None
    card_id: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None
    created_at: Optional[int] = None  # unix seconds

    def created_at_datetime(self) -> Optional[datetime]:
        if self.created_at is None:
            return None
        return datetime.fromtimestamp(self.created_at, tz=timezone.utc)

    def instrument(self) -> dict[str, Any]:
        """Instrument details kept on a captured payment."""
        return {
            "method": self.method,
            "bank": self.bank,
            "wallet": self.wallet,
            "vpa": self.vpa,
            "card_id": self.card_id,
        }


class RazorpayOrderEntity(_GatewayEntity):
    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None


class RazorpayRefundEntity(_GatewayEntity):
    id: str
    payment_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[int] = None


class WebhookNotification(BaseModel):
    """Parsed webhook body: `{"event": ..., "payload": {<kind>: {"entity": {...}}}}`."""

    model_config = ConfigDict(extra="allow")

    event: str
    payload: dict[str, Any] = Field(default_factory=dict)
    account_id: Optional[str] = None
    created_at: Optional[int] = None

    def _entity(self, kind: str, required: bool) -> Optional[dict[str, Any]]:
        wrapper = self.payload.get(kind)
        entity = wrapper.get("entity") if isinstance(wrapper, dict) else None
        if entity is None and required:
            raise ValueError(f"Missing payload.{kind}.entity in {self.event} notification")
        return entity

    def payment_entity(self, required: bool = True) -> Optional[RazorpayPaymentEntity]:
        entity = self._entity("payment", required)
        return RazorpayPaymentEntity.model_validate(entity) if entity is not None else None

    def order_entity(self) -> RazorpayOrderEntity:
        return RazorpayOrderEntity.model_validate(self._entity("order", True))

    def refund_entity(self) -> RazorpayRefundEntity:
        return RazorpayRefundEntity.model_validate(self._entity("refund", True))

    def payment_ref(self) -> Optional[str]:
        """Payment id for log context, if present."""
        entity = self._entity("payment", False)
        return entity.get("id") if isinstance(entity, dict) else None


class ReconcileOutcome(str, Enum):
    PROCESSED = "processed"  # records updated
    IGNORED = "ignored"      # unknown event kind
    SKIPPED = "skipped"      # record missing or transition not allowed
    FAILED = "failed"        # error after verification
    REJECTED = "rejected"    # authorization failure


class AcknowledgmentResult(BaseModel):
    """Response body returned to the gateway.

    `authorized`, `outcome` and `event` are excluded from the serialised body
    and drive the HTTP status and logging only.
    """

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None

    authorized: bool = Field(default=True, exclude=True)
    outcome: ReconcileOutcome = Field(default=ReconcileOutcome.PROCESSED, exclude=True)
    event: Optional[str] = Field(default=None, exclude=True)

    @classmethod
    def processed(cls, event: Optional[str], outcome: ReconcileOutcome = ReconcileOutcome.PROCESSED) -> "AcknowledgmentResult":
        return cls(success=True, message="Webhook processed successfully", outcome=outcome, event=event)

    @classmethod
    def failed(cls, details: str, event: Optional[str] = None) -> "AcknowledgmentResult":
        return cls(
            success=False,
            error="Webhook processing failed",
            details=details,
            outcome=ReconcileOutcome.FAILED,
            event=event,
        )

    @classmethod
    def rejected(cls) -> "AcknowledgmentResult":
        return cls(
            success=False,
            error="Invalid webhook signature",
            authorized=False,
            outcome=ReconcileOutcome.REJECTED,
        )

    def body(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class WebhookStatusBucketDTO(BaseModel):
    status: str
    count: int
    total_amount: Decimal


class LastProcessedDTO(BaseModel):
    id: int
    status: str
    webhook_processed_at: Optional[datetime] = None


class WebhookStatsDTO(BaseModel):
    webhook_stats: list[WebhookStatusBucketDTO] = Field(default_factory=list)
    last_processed: Optional[LastProcessedDTO] = None


class PaymentDetailDTO(BaseModel):
    id: int
    order_id: Optional[int] = None
    customer_id: Optional[int] = None
    gateway_order_id: str
    gateway_payment_id: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    payment_method: str
    failure_reason: Optional[str] = None
    refund_id: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_status: Optional[str] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    webhook_processed_at: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, payment: PaymentRecord) -> "PaymentDetailDTO":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            customer_id=payment.customer_id,
            gateway_order_id=payment.gateway_order_id,
            gateway_payment_id=payment.gateway_payment_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status.value,
            payment_method=payment.payment_method.value,
            failure_reason=payment.failure_reason,
            refund_id=payment.refund_id,
            refund_amount=payment.refund_amount,
            refund_status=payment.refund_status.value if payment.refund_status else None,
            paid_at=payment.paid_at,
            refunded_at=payment.refunded_at,
            webhook_processed_at=payment.webhook_processed_at,
            metadata=payment.metadata or {},
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )
