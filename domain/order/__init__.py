"""Order domain exports."""
from .entity import OrderRecord, OrderStatus, OrderPaymentStatus
from .repository import OrderRepository

__all__ = ["OrderRecord", "OrderStatus", "OrderPaymentStatus", "OrderRepository"]
