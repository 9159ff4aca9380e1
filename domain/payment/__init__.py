"""Payment domain exports."""
from .entity import PaymentRecord, PaymentStatus, PaymentMethod, RefundStatus
from .events import GatewayEventType
from .repository import PaymentRepository, StatusBucket, WebhookStats

__all__ = [
    "PaymentRecord",
    "PaymentStatus",
    "PaymentMethod",
    "RefundStatus",
    "GatewayEventType",
    "PaymentRepository",
    "StatusBucket",
    "WebhookStats",
]
