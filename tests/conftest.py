"""Pytest configuration and fixtures."""
import base64

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from jamroom.core.db import Base, get_db, get_session_factory
from jamroom.main import app
import jamroom.db.models  # noqa: F401


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Файловая sqlite-база: пакетное удаление открывает несколько соединений."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'jamroom-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: factory
    try:
        yield factory
    finally:
        app.dependency_overrides.clear()
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register_user(client):
    """Регистрация через API; возвращает JSON пользователя"""
    async def _register(username: str, password: str = "secret") -> dict:
        response = await client.post("/api/users/register", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return response.json()
    return _register


@pytest_asyncio.fixture
async def alice(register_user):
    return await register_user("alice")


@pytest_asyncio.fixture
async def bob(register_user):
    return await register_user("bob")


@pytest_asyncio.fixture
async def room(client, alice):
    """Комната alice: 140 BPM, A Minor"""
    response = await client.post("/api/rooms", json={
        "name": "Jam",
        "bpm": 140,
        "keySignature": "A Minor",
        "isPublic": True,
        "creatorId": alice["id"],
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def audio_data():
    return base64.b64encode(b"RIFF....WAVEfmt fake-pcm-payload").decode("ascii")
