"""
数据库配置和连接管理
"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url

from core.config import settings
from infrastructure.models import Base


def _build_async_url(database_url: str) -> str:
    """确保数据库URL使用异步驱动"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"Unsupported database driver: {drivername}. Use an async driver in DATABASE__URL")

    return url.set(drivername=driver_map[drivername]).render_as_string(hide_password=False)


engine: AsyncEngine = create_async_engine(
    _build_async_url(settings.database.url),
    echo=settings.database.echo,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def create_tables(bind: AsyncEngine = engine):
    """
    创建所有表

    根据models中定义的所有模型创建对应的数据库表
    """
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine = engine):
    """
    删除所有表

    警告：仅用于测试环境，会删除所有数据！
    """
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
