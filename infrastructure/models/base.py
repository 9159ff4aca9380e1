"""
数据库模型基类（SQLAlchemy 2.0 风格）
"""
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase


# 约束命名规则，与 alembic 迁移中的名称保持一致
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# 元数据对象用于数据库迁移
metadata = Base.metadata
