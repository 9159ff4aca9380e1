"""
API依赖项 - 组装应用服务（组合根）
"""
from typing import Callable

from fastapi import Depends

from application.ports.payment_gateway import WebhookSignatureVerifier
from application.services.payment_reconciler import PaymentReconciler
from application.services.payment_service import PaymentService
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.external.payments import get_webhook_verifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


async def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


async def get_signature_verifier() -> WebhookSignatureVerifier:
    # 每次请求读取配置中的 webhook secret
    return get_webhook_verifier()


async def get_payment_reconciler(
    verifier: WebhookSignatureVerifier = Depends(get_signature_verifier),
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
) -> PaymentReconciler:
    return PaymentReconciler(verifier=verifier, uow_factory=uow_factory)


async def get_payment_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
) -> PaymentService:
    return PaymentService(uow_factory=uow_factory)
