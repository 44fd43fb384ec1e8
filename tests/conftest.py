from __future__ import annotations

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from warehouse.core.config import Settings
from warehouse.db.category import Category
from warehouse.db.database import create_db_and_tables
from warehouse.db.supplier import Supplier
from warehouse.main import create_app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'warehouse-test.db'}",
        jwt_secret="test-secret",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    # httpx does not run the lifespan hook, so create the schema here
    app = create_app(settings)
    await create_db_and_tables(app.state.engine)
    try:
        yield app
    finally:
        await app.state.engine.dispose()


@pytest.fixture
def session_maker(app):
    return app.state.session_maker


@pytest.fixture
def warehouse_service(app):
    return app.state.warehouse_service


@pytest.fixture
def order_service(app):
    return app.state.order_service


@pytest.fixture
def product_service(app):
    return app.state.product_service


@pytest_asyncio.fixture
async def category(session_maker) -> Category:
    async with session_maker() as s:
        c = Category(name="General")
        s.add(c)
        await s.commit()
        return c


@pytest_asyncio.fixture
async def supplier(session_maker) -> Supplier:
    async with session_maker() as s:
        sup = Supplier(name="Acme Supply", email="sales@acme.example.com")
        s.add(sup)
        await s.commit()
        return sup


@pytest_asyncio.fixture
async def product(product_service, category):
    return await product_service.create_product(sku="P1", name="Product 1", category_id=category.id)


@pytest_asyncio.fixture
async def other_product(product_service, category):
    return await product_service.create_product(sku="P2", name="Product 2", category_id=category.id, unit="kg")


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _token_for(client: httpx.AsyncClient, role: str) -> str:
    email = f"{role}@example.com"
    password = f"{role}-password-123"
    r = await client.post("/api/auth/register", json={"email": email, "password": password, "role": role})
    assert r.status_code == 201, r.text
    r = await client.post("/api/auth/jwt/login", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


@pytest_asyncio.fixture
async def auth_headers(client):
    """Returns a coroutine: `await auth_headers("manager")` -> Authorization header dict."""
    cache = {}

    async def _headers(role: str) -> dict:
        if role not in cache:
            cache[role] = {"Authorization": f"Bearer {await _token_for(client, role)}"}
        return cache[role]

    return _headers
