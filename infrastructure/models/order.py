"""
订单数据库模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, nullable=True, index=True, comment="客户ID")

    payment_status = Column(
        String(20),
        nullable=False,
        default="unpaid",
        comment="支付状态: unpaid/paid/failed/refunded"
    )
    status = Column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        comment="订单状态: pending/confirmed/payment_failed/refunded"
    )
    total_amount = Column(Numeric(precision=15, scale=2), nullable=True, comment="订单金额")
    currency = Column(String(3), nullable=False, default="INR")

    paid_at = Column(DateTime(timezone=True), nullable=True, comment="支付完成时间")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    payments = relationship("PaymentModel", back_populates="order", lazy="select")

    def __repr__(self):
        return f"<OrderModel(id={self.id}, status='{self.status}', payment_status='{self.payment_status}')>"
