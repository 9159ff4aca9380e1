"""
支付仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from domain.payment.entity import (
    PaymentRecord,
    PaymentStatus,
    PaymentMethod,
    RefundStatus,
    ensure_utc,
)
from domain.payment.repository import PaymentRepository, StatusBucket, WebhookStats
from infrastructure.models.payment import PaymentModel
from core.logging_config import get_logger


logger = get_logger(__name__)


def _to_decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


class SQLAlchemyPaymentRepository(PaymentRepository):
    """支付仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentModel) -> PaymentRecord:
        """将数据库模型转换为领域实体"""
        return PaymentRecord(
            id=model.id,
            gateway_order_id=model.gateway_order_id,
            amount=_to_decimal(model.amount),
            currency=model.currency,
            status=PaymentStatus(model.status),
            order_id=model.order_id,
            customer_id=model.customer_id,
            gateway_payment_id=model.gateway_payment_id,
            payment_method=PaymentMethod(model.payment_method),
            failure_reason=model.failure_reason,
            refund_id=model.refund_id,
            refund_amount=_to_decimal(model.refund_amount),
            refund_status=RefundStatus(model.refund_status) if model.refund_status else None,
            created_at=model.created_at,
            updated_at=model.updated_at,
            paid_at=model.paid_at,
            refunded_at=model.refunded_at,
            webhook_processed_at=model.webhook_processed_at,
            metadata=dict(model.extra_metadata or {}),
            notes=model.notes,
        )

    def _to_model(self, entity: PaymentRecord) -> PaymentModel:
        """将领域实体转换为数据库模型"""
        return PaymentModel(
            id=entity.id,
            order_id=entity.order_id,
            customer_id=entity.customer_id,
            gateway_order_id=entity.gateway_order_id,
            gateway_payment_id=entity.gateway_payment_id,
            amount=entity.amount,
            currency=entity.currency,
            status=entity.status.value,
            payment_method=entity.payment_method.value,
            failure_reason=entity.failure_reason,
            refund_id=entity.refund_id,
            refund_amount=entity.refund_amount,
            refund_status=entity.refund_status.value if entity.refund_status else None,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            paid_at=entity.paid_at,
            refunded_at=entity.refunded_at,
            webhook_processed_at=entity.webhook_processed_at,
            extra_metadata=entity.metadata,
            notes=entity.notes,
        )

    async def _first_where(self, *criteria) -> Optional[PaymentRecord]:
        result = await self.session.execute(
            select(PaymentModel).where(*criteria).order_by(PaymentModel.id).limit(1)
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    async def create(self, payment: PaymentRecord) -> PaymentRecord:
        """创建支付记录"""
        db_payment = self._to_model(payment)
        self.session.add(db_payment)
        await self.session.flush()
        await self.session.refresh(db_payment)
        logger.info(
            "payment_created",
            payment_id=db_payment.id,
            gateway_order_id=db_payment.gateway_order_id,
        )
        return self._to_entity(db_payment)

    async def get_by_id(self, payment_id: int) -> Optional[PaymentRecord]:
        return await self._first_where(PaymentModel.id == payment_id)

    async def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[PaymentRecord]:
        return await self._first_where(PaymentModel.gateway_order_id == gateway_order_id)

    async def get_by_gateway_payment_id(self, gateway_payment_id: str) -> Optional[PaymentRecord]:
        return await self._first_where(PaymentModel.gateway_payment_id == gateway_payment_id)

    async def get_by_refund_id(self, refund_id: str) -> Optional[PaymentRecord]:
        return await self._first_where(PaymentModel.refund_id == refund_id)

    async def update(self, payment: PaymentRecord) -> PaymentRecord:
        """更新支付记录"""
        db_payment = await self.session.get(PaymentModel, payment.id)
        if not db_payment:
            raise ValueError(f"Payment with id {payment.id} not found")

        db_payment.order_id = payment.order_id
        db_payment.gateway_payment_id = payment.gateway_payment_id
        db_payment.status = payment.status.value
        db_payment.payment_method = payment.payment_method.value
        db_payment.failure_reason = payment.failure_reason
        db_payment.refund_id = payment.refund_id
        db_payment.refund_amount = payment.refund_amount
        db_payment.refund_status = payment.refund_status.value if payment.refund_status else None
        db_payment.paid_at = payment.paid_at
        db_payment.refunded_at = payment.refunded_at
        db_payment.webhook_processed_at = payment.webhook_processed_at
        db_payment.extra_metadata = dict(payment.metadata or {})
        db_payment.notes = payment.notes

        await self.session.flush()
        await self.session.refresh(db_payment)

        logger.info(
            "payment_updated",
            payment_id=db_payment.id,
            gateway_order_id=db_payment.gateway_order_id,
            status=db_payment.status,
        )
        return self._to_entity(db_payment)

    async def webhook_stats(self) -> WebhookStats:
        """按状态汇总 webhook 处理过的支付"""
        processed = PaymentModel.webhook_processed_at.is_not(None)
        grouped = await self.session.execute(
            select(
                PaymentModel.status,
                func.count(PaymentModel.id),
                func.coalesce(func.sum(PaymentModel.amount), 0),
            )
            .where(processed)
            .group_by(PaymentModel.status)
            .order_by(PaymentModel.status)
        )
        stats = WebhookStats(
            buckets=[
                StatusBucket(
                    status=PaymentStatus(status),
                    count=count,
                    total_amount=_to_decimal(total),
                )
                for status, count, total in grouped.all()
            ]
        )

        last = await self.session.execute(
            select(PaymentModel.id, PaymentModel.status, PaymentModel.webhook_processed_at)
            .where(processed)
            .order_by(PaymentModel.webhook_processed_at.desc(), PaymentModel.id.desc())
            .limit(1)
        )
        row = last.first()
        if row is not None:
            stats.last_processed_id = row.id
            stats.last_processed_status = PaymentStatus(row.status)
            # SQLite 返回 naive datetime
            stats.last_processed_at = ensure_utc(row.webhook_processed_at)
        return stats
