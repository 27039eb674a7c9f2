from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from jamroom.core.config import settings

# Базовый класс для моделей
Base = declarative_base()

# Асинхронный движок
engine = create_async_engine(settings.database_url, future=True, echo=settings.sql_echo)

# Сессии
SessionLocal = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Функция для dependency injection в FastAPI
async def get_db():
    async with SessionLocal() as session:
        yield session


def get_session_factory():
    """Фабрика сессий для операций, которые работают в нескольких независимых сессиях"""
    return SessionLocal


async def init_models() -> None:
    """Создание таблиц (для dev-базы без миграций)"""
    import jamroom.db.models  # noqa: F401  регистрирует модели в метаданных

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
