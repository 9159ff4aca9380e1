"""
Payments API routes.

Razorpay webhook receiver plus read-only stats and payment detail. Keep this
thin: verification and reconciliation live in the application service.
"""
from __future__ import annotations

import ipaddress
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette import status as http_status

from api.dependencies import get_payment_reconciler, get_payment_service
from api.middleware.request_id import resolve_client_ip
from application.dtos.payments import AcknowledgmentResult
from application.services.payment_reconciler import PaymentReconciler
from application.services.payment_service import PaymentService
from core.config import settings
from core.logging_config import get_logger
from core.response import success_response
from core.settings import payment_settings


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def ip_permitted(remote_ip: Optional[str], allowlist: list[str]) -> bool:
    """Match a caller IP against plain IPs and CIDR ranges."""
    if not allowlist:
        return True
    if not remote_ip:
        return False
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allowlist:
        try:
            if "/" in entry:
                if rip in ipaddress.ip_network(entry, strict=False):
                    return True
            elif rip == ipaddress.ip_address(entry):
                return True
        except ValueError:
            logger.warning("webhook_allowlist_entry_invalid", entry=entry)
    return False


def _ack_response(result: AcknowledgmentResult) -> JSONResponse:
    status_code = http_status.HTTP_200_OK if result.authorized else http_status.HTTP_401_UNAUTHORIZED
    return JSONResponse(status_code=status_code, content=result.body())


@router.post("/webhooks/razorpay", summary="Razorpay webhook")
async def razorpay_webhook(
    request: Request,
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    remote_ip = getattr(request.state, "client_ip", None) or resolve_client_ip(
        request, settings.TRUST_PROXY_HEADERS
    )
    if not ip_permitted(remote_ip, payment_settings.webhook.ip_allowlist or []):
        logger.warning("webhook_ip_not_allowed", remote_ip=remote_ip)
        return _ack_response(AcknowledgmentResult.rejected())

    # 验签必须基于原始字节
    raw_body = await request.body()
    signature = request.headers.get(payment_settings.razorpay.signature_header)
    result = await reconciler.process_notification(raw_body, signature)
    logger.info(
        "razorpay_webhook_acknowledged",
        event_type=result.event,
        outcome=result.outcome.value,
        success=result.success,
    )
    return _ack_response(result)


@router.get("/webhooks/razorpay/stats", summary="Webhook processing stats")
async def razorpay_webhook_stats(service: PaymentService = Depends(get_payment_service)):
    stats = await service.webhook_stats()
    return success_response(data=stats.model_dump(mode="json"))


@router.get("/{payment_id}", summary="Payment detail")
async def get_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    payment = await service.get_payment(payment_id)
    return success_response(data=payment.model_dump(mode="json"))
