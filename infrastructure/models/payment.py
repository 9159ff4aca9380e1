"""
支付数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, JSON,
    Index, ForeignKey
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base


class PaymentModel(Base):
    """
    支付数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.payment.entity.PaymentRecord 中
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    # 关联订单/客户
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="关联订单ID",
    )
    customer_id = Column(Integer, nullable=True, index=True, comment="客户ID")

    # 网关引用
    gateway_order_id = Column(String(100), unique=True, nullable=False, comment="Razorpay order_id")
    gateway_payment_id = Column(String(100), nullable=True, index=True, comment="Razorpay payment id")

    # 金额（主币单位）
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="支付金额")
    currency = Column(String(3), nullable=False, default="INR", comment="货币代码 ISO-4217")

    status = Column(
        String(20),
        nullable=False,
        default="created",
        index=True,
        comment="支付状态: created/attempted/completed/failed/refunded"
    )
    payment_method = Column(
        String(20),
        nullable=False,
        default="other",
        comment="支付方式: card/netbanking/wallet/upi/other"
    )
    failure_reason = Column(Text, nullable=True, comment="失败原因")

    # 退款信息
    refund_id = Column(String(100), nullable=True, index=True, comment="Razorpay refund id")
    refund_amount = Column(Numeric(precision=15, scale=2), nullable=True, comment="退款金额")
    refund_status = Column(String(20), nullable=True, comment="退款状态: pending/processed/failed")

    # 时间戳
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )
    paid_at = Column(DateTime(timezone=True), nullable=True, comment="支付完成时间")
    refunded_at = Column(DateTime(timezone=True), nullable=True, comment="退款完成时间")
    webhook_processed_at = Column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="最近一次 webhook 处理时间"
    )

    # 元数据（使用 extra_metadata 避免与 SQLAlchemy 的 metadata 冲突）
    extra_metadata = Column("metadata", JSON, nullable=True, comment="扩展元数据")
    notes = Column(Text, nullable=True, comment="备注")

    order = relationship("OrderModel", back_populates="payments", lazy="select")

    __table_args__ = (
        Index("ix_payments_customer_created", "customer_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<PaymentModel(id={self.id}, gateway_order_id='{self.gateway_order_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
