"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

from typing import Optional, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.payment_repository import SQLAlchemyPaymentRepository


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    一个 UoW 对应一个数据库事务

    webhook 对账时支付与订单的写入在同一事务中提交或回滚。
    传入外部 session 时由调用方负责关闭。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._owns_session = session is None
        self.session: Optional[AsyncSession] = session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self.payment_repository = SQLAlchemyPaymentRepository(self.session)
        self.order_repository = SQLAlchemyOrderRepository(self.session)
        # 只读模式依赖 session 的自动开启，不显式 begin
        if not self._readonly and not self.session.in_transaction():
            await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self._owns_session and self.session is not None:
                await self.session.close()
                self.session = None
            self.payment_repository = None
            self.order_repository = None

    async def commit(self) -> None:
        if self._readonly:
            self._committed = True
            return
        if self.session is not None and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
