"""
支付仓储接口 - 定义支付数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from .entity import PaymentRecord, PaymentStatus


@dataclass
class StatusBucket:
    status: PaymentStatus
    count: int
    total_amount: Decimal


@dataclass
class WebhookStats:
    """经 webhook 处理过的支付统计"""
    buckets: List[StatusBucket] = field(default_factory=list)
    last_processed_id: Optional[int] = None
    last_processed_status: Optional[PaymentStatus] = None
    last_processed_at: Optional[datetime] = None


class PaymentRepository(ABC):
    """支付仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, payment: PaymentRecord) -> PaymentRecord:
        """创建支付记录"""
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[PaymentRecord]:
        """根据ID获取支付"""
        pass

    @abstractmethod
    async def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[PaymentRecord]:
        """根据网关订单号获取支付"""
        pass

    @abstractmethod
    async def get_by_gateway_payment_id(self, gateway_payment_id: str) -> Optional[PaymentRecord]:
        """根据网关支付ID获取支付"""
        pass

    @abstractmethod
    async def get_by_refund_id(self, refund_id: str) -> Optional[PaymentRecord]:
        """根据网关退款ID获取支付"""
        pass

    @abstractmethod
    async def update(self, payment: PaymentRecord) -> PaymentRecord:
        """按ID更新支付记录"""
        pass

    @abstractmethod
    async def webhook_stats(self) -> WebhookStats:
        """按状态汇总 webhook 处理过的支付"""
        pass
