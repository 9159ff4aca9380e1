"""
Read-side payment use-cases: webhook statistics and payment detail.

Depends only on the domain unit-of-work abstraction; the concrete
SQLAlchemy implementation is injected from the composition root (API).
"""
from __future__ import annotations

from typing import Callable

from application.dtos.payments import (
    LastProcessedDTO,
    PaymentDetailDTO,
    WebhookStatsDTO,
    WebhookStatusBucketDTO,
)
from core.logging_config import get_logger
from domain.common.exceptions import PaymentNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


class PaymentService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def webhook_stats(self) -> WebhookStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            stats = await uow.payment_repository.webhook_stats()

        last = None
        if stats.last_processed_id is not None:
            last = LastProcessedDTO(
                id=stats.last_processed_id,
                status=stats.last_processed_status.value,
                webhook_processed_at=stats.last_processed_at,
            )
        logger.debug("webhook_stats_loaded", buckets=len(stats.buckets))
        return WebhookStatsDTO(
            webhook_stats=[
                WebhookStatusBucketDTO(
                    status=bucket.status.value,
                    count=bucket.count,
                    total_amount=bucket.total_amount,
                )
                for bucket in stats.buckets
            ],
            last_processed=last,
        )

    async def get_payment(self, payment_id: int) -> PaymentDetailDTO:
        async with self._uow_factory(readonly=True) as uow:
            payment = await uow.payment_repository.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFoundException(payment_id)
        return PaymentDetailDTO.from_entity(payment)
