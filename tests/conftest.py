"""Pytest bootstrap configuration.

Environment variables are set before any application module imports
settings; the database fixtures then build an isolated in-memory SQLite
engine per test.
"""
import os

from factories import WEBHOOK_SECRET

os.environ["DATABASE__URL"] = "sqlite+aiosqlite://"
os.environ["RAZORPAY__WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal
from typing import Any, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from application.services.payment_reconciler import PaymentReconciler
from domain.order.entity import OrderRecord
from domain.payment.entity import PaymentRecord
from infrastructure.database import create_tables
from infrastructure.external.payments import RazorpayWebhookVerifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def uow_factory(engine):
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    def factory(**kwargs) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory=session_factory, **kwargs)

    return factory


@pytest.fixture
def verifier() -> RazorpayWebhookVerifier:
    return RazorpayWebhookVerifier(WEBHOOK_SECRET)


@pytest.fixture
def reconciler(verifier, uow_factory) -> PaymentReconciler:
    return PaymentReconciler(verifier=verifier, uow_factory=uow_factory)


@pytest.fixture
def seed(uow_factory):
    """Insert an order and its pending payment, as the checkout flow would."""

    async def _seed(
        gateway_order_id: str = "O1",
        amount: Decimal = Decimal("1500.00"),
        with_order: bool = True,
        **fields: Any,
    ) -> tuple[PaymentRecord, Optional[OrderRecord]]:
        async with uow_factory() as uow:
            order = None
            if with_order:
                order = await uow.order_repository.create(
                    OrderRecord(id=None, customer_id=7, total_amount=amount)
                )
            payment = await uow.payment_repository.create(
                PaymentRecord(
                    id=None,
                    gateway_order_id=gateway_order_id,
                    amount=amount,
                    order_id=order.id if order else None,
                    customer_id=7,
                    **fields,
                )
            )
        return payment, order

    return _seed


@pytest.fixture
def load(uow_factory):
    """Read back the current payment and its linked order."""

    async def _load(payment_id: int) -> tuple[Optional[PaymentRecord], Optional[OrderRecord]]:
        async with uow_factory(readonly=True) as uow:
            payment = await uow.payment_repository.get_by_id(payment_id)
            order = None
            if payment is not None and payment.order_id is not None:
                order = await uow.order_repository.get_by_id(payment.order_id)
        return payment, order

    return _load
