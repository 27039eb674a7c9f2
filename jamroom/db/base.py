from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.types import TypeDecorator

from jamroom.core.clock import as_utc
from jamroom.core.db import Base


class UTCDateTime(TypeDecorator):
    """DateTime, который всегда читается и пишется как aware UTC.

    SQLite не хранит смещение и возвращает naive значения даже для
    ``DateTime(timezone=True)``.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return as_utc(value) if value is not None else None


class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
