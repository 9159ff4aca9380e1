"""
订单仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession

from domain.order.entity import OrderRecord, OrderStatus, OrderPaymentStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> OrderRecord:
        return OrderRecord(
            id=model.id,
            customer_id=model.customer_id,
            payment_status=OrderPaymentStatus(model.payment_status),
            status=OrderStatus(model.status),
            total_amount=Decimal(str(model.total_amount)) if model.total_amount is not None else None,
            currency=model.currency,
            paid_at=model.paid_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, order: OrderRecord) -> OrderRecord:
        db_order = OrderModel(
            id=order.id,
            customer_id=order.customer_id,
            payment_status=order.payment_status.value,
            status=order.status.value,
            total_amount=order.total_amount,
            currency=order.currency,
            paid_at=order.paid_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info("order_created", order_id=db_order.id)
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: int) -> Optional[OrderRecord]:
        db_order = await self.session.get(OrderModel, order_id)
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: OrderRecord) -> OrderRecord:
        db_order = await self.session.get(OrderModel, order.id)
        if not db_order:
            raise ValueError(f"Order with id {order.id} not found")

        db_order.payment_status = order.payment_status.value
        db_order.status = order.status.value
        db_order.paid_at = order.paid_at

        await self.session.flush()
        await self.session.refresh(db_order)

        logger.info(
            "order_updated",
            order_id=db_order.id,
            status=db_order.status,
            payment_status=db_order.payment_status,
        )
        return self._to_entity(db_order)
