"""
订单仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import OrderRecord


class OrderRepository(ABC):
    """订单仓储抽象接口"""

    @abstractmethod
    async def create(self, order: OrderRecord) -> OrderRecord:
        """创建订单记录"""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[OrderRecord]:
        """根据ID获取订单"""
        pass

    @abstractmethod
    async def update(self, order: OrderRecord) -> OrderRecord:
        """按ID更新订单"""
        pass
