"""
Razorpay webhook reconciler.

Verifies the signature over the raw body, then dispatches the notification to
exactly one handler per GatewayEventType. Every handler runs inside one unit
of work, so the payment write and the linked order write commit or roll back
together.

Acknowledgment policy:
- bad or missing signature, or no secret configured -> rejected, nothing is read or written
- unknown event kind -> success, no mutation
- referenced payment missing -> logged, success
- any other error after verification -> logged, success=False body, still 200
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from application.dtos.payments import (
    AcknowledgmentResult,
    ReconcileOutcome,
    WebhookNotification,
    minor_to_major,
)
from application.ports.payment_gateway import WebhookSignatureVerifier
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import OrderRecord
from domain.payment.entity import PaymentRecord, PaymentStatus
from domain.payment.events import GatewayEventType
from shared.codes.payment_codes import normalize_payment_method


logger = get_logger(__name__)

Handler = Callable[[AbstractUnitOfWork, WebhookNotification], Awaitable[ReconcileOutcome]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentReconciler:
    def __init__(
        self,
        verifier: WebhookSignatureVerifier,
        uow_factory: Callable[[], AbstractUnitOfWork],
    ) -> None:
        self._verifier = verifier
        self._uow_factory = uow_factory
        self._handlers: dict[GatewayEventType, Handler] = {
            GatewayEventType.PAYMENT_CAPTURED: self._on_payment_captured,
            GatewayEventType.PAYMENT_FAILED: self._on_payment_failed,
            GatewayEventType.PAYMENT_AUTHORIZED: self._on_payment_authorized,
            GatewayEventType.ORDER_PAID: self._on_order_paid,
            GatewayEventType.REFUND_CREATED: self._on_refund_created,
            GatewayEventType.REFUND_PROCESSED: self._on_refund_processed,
        }
        missing = set(GatewayEventType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler registered for: {sorted(m.value for m in missing)}")

    async def process_notification(self, raw_body: bytes, signature: Optional[str]) -> AcknowledgmentResult:
        try:
            authorized = self._verifier.verify(raw_body, signature)
        except BusinessException as exc:
            logger.error(
                "webhook_signature_unverifiable",
                provider=self._verifier.provider,
                error=exc.message,
                error_type=exc.error_type,
            )
            return AcknowledgmentResult.rejected()
        if not authorized:
            logger.warning(
                "webhook_signature_invalid",
                provider=self._verifier.provider,
                has_signature=bool(signature),
            )
            return AcknowledgmentResult.rejected()

        event_tag: Optional[str] = None
        try:
            notification = WebhookNotification.model_validate_json(raw_body)
            event_tag = notification.event
            logger.info(
                "razorpay_webhook_received",
                event_type=event_tag,
                gateway_payment_id=notification.payment_ref(),
            )

            kind = GatewayEventType.parse(event_tag)
            if kind is None:
                logger.info("webhook_event_unhandled", event_type=event_tag)
                return AcknowledgmentResult.processed(event_tag, ReconcileOutcome.IGNORED)

            async with self._uow_factory() as uow:
                outcome = await self._handlers[kind](uow, notification)
            return AcknowledgmentResult.processed(event_tag, outcome)
        except Exception as exc:
            logger.error(
                "webhook_processing_failed",
                event_type=event_tag,
                error=str(exc),
                exc_info=True,
            )
            return AcknowledgmentResult.failed(str(exc), event=event_tag)

    # ------------------------------------------------------------------
    # helpers

    @staticmethod
    def _not_found(event: GatewayEventType, **ref) -> ReconcileOutcome:
        logger.warning("payment_not_found", event_type=event.value, **ref)
        return ReconcileOutcome.SKIPPED

    @staticmethod
    def _transition_ignored(event: GatewayEventType, payment: PaymentRecord) -> ReconcileOutcome:
        logger.info(
            "payment_transition_ignored",
            event_type=event.value,
            payment_id=payment.id,
            status=payment.status.value,
        )
        return ReconcileOutcome.SKIPPED

    @staticmethod
    async def _update_order(
        uow: AbstractUnitOfWork,
        payment: PaymentRecord,
        apply: Callable[[OrderRecord], None],
    ) -> None:
        if payment.order_id is None:
            return
        order = await uow.order_repository.get_by_id(payment.order_id)
        if order is None:
            logger.warning("order_not_found", order_id=payment.order_id, payment_id=payment.id)
            return
        apply(order)
        await uow.order_repository.update(order)

    @staticmethod
    async def _save(uow: AbstractUnitOfWork, payment: PaymentRecord, now: datetime, **metadata) -> PaymentRecord:
        payment.merge_metadata(**metadata)
        payment.touch_webhook(now)
        return await uow.payment_repository.update(payment)

    # ------------------------------------------------------------------
    # handlers

    async def _on_payment_captured(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        entity = notification.payment_entity()
        event = GatewayEventType.PAYMENT_CAPTURED
        payment = await uow.payment_repository.get_by_gateway_order_id(entity.order_id) if entity.order_id else None
        if payment is None:
            return self._not_found(event, gateway_order_id=entity.order_id)

        now = _utcnow()
        applied = payment.mark_completed(
            gateway_payment_id=entity.id,
            method=normalize_payment_method(entity.method),
            paid_at=entity.created_at_datetime() or now,
        )
        if not applied:
            return self._transition_ignored(event, payment)

        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            razorpay_data=entity.instrument(),
        )
        await self._update_order(uow, payment, lambda order: order.mark_paid(now))
        logger.info(
            "payment_captured",
            payment_id=payment.id,
            gateway_payment_id=entity.id,
            amount=str(minor_to_major(entity.amount)),
        )
        return ReconcileOutcome.PROCESSED

    async def _on_payment_failed(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        entity = notification.payment_entity()
        event = GatewayEventType.PAYMENT_FAILED
        payment = await uow.payment_repository.get_by_gateway_order_id(entity.order_id) if entity.order_id else None
        if payment is None:
            return self._not_found(event, gateway_order_id=entity.order_id)

        now = _utcnow()
        reason = entity.error_description or "Payment failed"
        if not payment.mark_failed(
            gateway_payment_id=entity.id,
            method=normalize_payment_method(entity.method),
            reason=reason,
        ):
            return self._transition_ignored(event, payment)

        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            error_code=entity.error_code,
            error_description=entity.error_description,
            razorpay_data=entity.raw(),
        )
        await self._update_order(uow, payment, lambda order: order.mark_payment_failed())
        logger.info("payment_failed", payment_id=payment.id, reason=reason)
        return ReconcileOutcome.PROCESSED

    async def _on_payment_authorized(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        entity = notification.payment_entity()
        event = GatewayEventType.PAYMENT_AUTHORIZED
        payment = await uow.payment_repository.get_by_gateway_order_id(entity.order_id) if entity.order_id else None
        if payment is None:
            return self._not_found(event, gateway_order_id=entity.order_id)

        now = _utcnow()
        if not payment.mark_attempted(
            gateway_payment_id=entity.id,
            method=normalize_payment_method(entity.method),
        ):
            return self._transition_ignored(event, payment)

        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            razorpay_data=entity.raw(),
        )
        logger.info("payment_authorized", payment_id=payment.id, gateway_payment_id=entity.id)
        return ReconcileOutcome.PROCESSED

    async def _on_order_paid(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        """Backup path for a capture whose payment.captured was never processed."""
        order_entity = notification.order_entity()
        payment_entity = notification.payment_entity(required=False)
        event = GatewayEventType.ORDER_PAID
        payment = await uow.payment_repository.get_by_gateway_order_id(order_entity.id)
        if payment is None:
            return self._not_found(event, gateway_order_id=order_entity.id)

        if payment.status == PaymentStatus.COMPLETED:
            logger.info("order_paid_already_completed", payment_id=payment.id)
            return ReconcileOutcome.SKIPPED

        now = _utcnow()
        if not payment.mark_completed(
            gateway_payment_id=payment_entity.id if payment_entity else None,
            method=normalize_payment_method(payment_entity.method) if payment_entity else None,
            paid_at=now,
        ):
            return self._transition_ignored(event, payment)

        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            processed_via_order_paid=True,
        )
        await self._update_order(uow, payment, lambda order: order.mark_paid(now))
        logger.info("order_paid_processed", payment_id=payment.id, order_id=payment.order_id)
        return ReconcileOutcome.PROCESSED

    async def _on_refund_created(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        refund = notification.refund_entity()
        event = GatewayEventType.REFUND_CREATED
        payment = await uow.payment_repository.get_by_gateway_payment_id(refund.payment_id) if refund.payment_id else None
        if payment is None:
            return self._not_found(event, gateway_payment_id=refund.payment_id, refund_id=refund.id)

        now = _utcnow()
        amount = minor_to_major(refund.amount)
        # 同一支付的多次 refund.created：后写为准
        payment.record_refund(refund.id, amount)
        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            refund_created_at=now.isoformat(),
            refund_data=refund.raw(),
        )
        logger.info("refund_created", payment_id=payment.id, refund_id=refund.id, amount=str(amount))
        return ReconcileOutcome.PROCESSED

    async def _on_refund_processed(self, uow: AbstractUnitOfWork, notification: WebhookNotification) -> ReconcileOutcome:
        refund = notification.refund_entity()
        event = GatewayEventType.REFUND_PROCESSED
        payment = await uow.payment_repository.get_by_refund_id(refund.id)
        if payment is None:
            return self._not_found(event, refund_id=refund.id)

        now = _utcnow()
        moved = payment.finalize_refund(refund.id, refunded_at=now)
        payment = await self._save(
            uow,
            payment,
            now,
            webhook_processed_at=now.isoformat(),
            refund_processed_at=now.isoformat(),
            refund_data=refund.raw(),
        )
        if moved:
            await self._update_order(uow, payment, lambda order: order.mark_refunded())
        else:
            self._transition_ignored(event, payment)
        logger.info(
            "refund_processed",
            payment_id=payment.id,
            refund_id=refund.id,
            amount=str(minor_to_major(refund.amount)),
        )
        return ReconcileOutcome.PROCESSED
