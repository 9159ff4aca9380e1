"""Razorpay-shaped webhook bodies and signatures for tests."""
import hashlib
import hmac
import json
from typing import Any, Optional


WEBHOOK_SECRET = "whsec_test_secret"


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def notification(event: str, **payload: Any) -> bytes:
    """Build a webhook body: payload.<kind>.entity for each keyword."""
    return json.dumps(
        {
            "entity": "event",
            "account_id": "acc_test",
            "event": event,
            "contains": list(payload),
            "payload": {kind: {"entity": entity} for kind, entity in payload.items()},
            "created_at": 1700000100,
        }
    ).encode("utf-8")


def payment_entity(
    order_id: str = "O1",
    payment_id: str = "R1",
    amount: int = 150000,
    method: Optional[str] = "upi",
    created_at: int = 1700000000,
    **extra: Any,
) -> dict:
    entity = {
        "id": payment_id,
        "entity": "payment",
        "order_id": order_id,
        "amount": amount,
        "currency": "INR",
        "status": "captured",
        "method": method,
        "vpa": "customer@okbank" if method == "upi" else None,
        "bank": None,
        "wallet": None,
        "card_id": None,
        "created_at": created_at,
    }
    entity.update(extra)
    return entity


def order_entity(order_id: str = "O1", amount: int = 150000) -> dict:
    return {"id": order_id, "entity": "order", "amount": amount, "currency": "INR", "status": "paid"}


def refund_entity(refund_id: str = "rfnd_1", payment_id: str = "R1", amount: int = 50000, **extra: Any) -> dict:
    entity = {
        "id": refund_id,
        "entity": "refund",
        "payment_id": payment_id,
        "amount": amount,
        "currency": "INR",
        "status": "pending",
        "created_at": 1700000500,
    }
    entity.update(extra)
    return entity
