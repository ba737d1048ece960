"""Shared fixtures: a throwaway SQLite database and the app wired to it."""

import os

# Keep the default ./data database out of the test run
os.environ.setdefault("GROCERY_DATABASE__URL", "sqlite+aiosqlite:///:memory:")

from typing import List, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession

from bazar_buddy.core.config import OCRConfig
from bazar_buddy.core.database import get_db, init_db
from bazar_buddy.core.exceptions import ExternalServiceError
from bazar_buddy.main import app
from bazar_buddy.models.user import User
from bazar_buddy.services.catalog_service import CatalogService
from bazar_buddy.services.ocr_service import OCRService
from bazar_buddy.services.price_service import PriceService
from bazar_buddy.web.dependencies import (
    get_catalog_service,
    get_ocr_service,
    get_price_service,
)


class FakeLLM:
    """Stands in for ChatCompletionClient; replies with ``reply`` or fails."""

    def __init__(self, reply: Optional[str] = None):
        self.reply = reply
        self.calls: List[list] = []

    @property
    def is_configured(self) -> bool:
        return self.reply is not None

    async def complete(self, messages, max_tokens=200, temperature=0.3) -> str:
        self.calls.append(messages)
        if self.reply is None:
            raise ExternalServiceError("Price generation is not configured")
        return self.reply


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db):
    account = User(email="rahim@example.com", name="Rahim", password_hash="x")
    db.add(account)
    await db.flush()
    return account


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def ocr_config():
    return OCRConfig()


@pytest.fixture
def wired_app(session_factory, fake_llm, ocr_config):
    """The FastAPI app using the test database and fake providers."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_price_service] = lambda: PriceService(fake_llm)
    app.dependency_overrides[get_catalog_service] = lambda: CatalogService(fake_llm)
    app.dependency_overrides[get_ocr_service] = lambda: OCRService(ocr_config)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def transport(wired_app):
    return httpx.ASGITransport(app=wired_app)


@pytest_asyncio.fixture
async def api(transport):
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_headers(api):
    response = await api.post("/auth/register", json={
        "name": "Karim", "email": "karim@example.com", "password": "secret123",
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def list_payload(**overrides):
    payload = {
        "title": "March Bazar",
        "month": "March",
        "year": 2025,
        "items": [
            {"name": "Rice", "quantity": 2, "unit": "kg", "estimated_price": 10},
            {"name": "Milk", "quantity": 1, "unit": "l", "estimated_price": 2},
        ],
    }
    payload.update(overrides)
    return payload
