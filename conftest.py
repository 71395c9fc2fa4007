"""
Root conftest for the pytest test suite.

Each test that touches the database gets a fresh in-memory sqlite schema, so
tests never see each other's orders. HTTP tests talk to the FastAPI app over
httpx's ASGI transport, on the same event loop as the database fixture.

Key Fixtures:
- `initialize_test_db`: Creates a fresh DB schema and seeds one user per role.
- `app_for_testing`: The FastAPI app with an empty report cache and no dependency overrides.
- `client`: A non-authenticated AsyncClient.
- `manager_client`: An AsyncClient authenticated as a shop manager.
- `admin_client`: An AsyncClient authenticated as an admin.
- `customer_client`: An AsyncClient authenticated as a customer.
- `order_factory`: Creates orders (with items, coupons) directly in the order store.
"""

import datetime
import itertools
from typing import Any, AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from storestats.features.auth.models import User
from storestats.features.auth.security import get_password_hash
from storestats.features.orders.models import Order, OrderItem, CouponLine, Refund

from storestats.main import app as actual_app

TEST_DB_CONFIG = {
    "connections": {"default": "sqlite://:memory:"},
    "apps": {
        "models": {
            "models": [
                "storestats.features.auth.models",
                "storestats.features.orders.models",
            ],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}

FIXTURE_PASSWORD = "password123"
FIXTURE_USERS = {
    "managerfixture": "shop_manager",
    "adminfixture": "admin",
    "customerfixture": "customer",
}


@pytest_asyncio.fixture(scope="function")
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Initializes a fresh in-memory database for one test and seeds one user per role.
    """
    await Tortoise.init(config=TEST_DB_CONFIG)
    await Tortoise.generate_schemas()
    hashed_password = get_password_hash(FIXTURE_PASSWORD)
    for username, role in FIXTURE_USERS.items():
        await User.create(
            username=username,
            email=f"{username}@example.com",
            hashed_password=hashed_password,
            role=role,
        )

    yield

    await Tortoise.close_connections()


@pytest.fixture(scope="function")
def app_for_testing() -> Generator[FastAPI, Any, None]:
    """
    Provides the FastAPI application with an empty report cache.

    ASGITransport does not run the lifespan, so the production database is
    never opened; `initialize_test_db` owns the connection instead.
    """
    actual_app.state.report_cache.invalidate_all()
    yield actual_app
    actual_app.dependency_overrides.clear()
    actual_app.state.report_cache.invalidate_all()


async def _login(client: AsyncClient, username: str) -> None:
    response = await client.post(
        "/api/v1/auth/token", data={"username": username, "password": FIXTURE_PASSWORD}
    )
    if response.status_code != 200:
        raise Exception(f"Authentication failed for {username}: {response.text}")
    client.headers["Authorization"] = f"Bearer {response.json()['access_token']}"


@pytest_asyncio.fixture(scope="function")
async def client(app_for_testing: FastAPI, initialize_test_db) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app_for_testing), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def manager_client(app_for_testing: FastAPI, initialize_test_db) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app_for_testing), base_url="http://test") as ac:
        await _login(ac, "managerfixture")
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(app_for_testing: FastAPI, initialize_test_db) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app_for_testing), base_url="http://test") as ac:
        await _login(ac, "adminfixture")
        yield ac


@pytest_asyncio.fixture(scope="function")
async def customer_client(app_for_testing: FastAPI, initialize_test_db) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app_for_testing), base_url="http://test") as ac:
        await _login(ac, "customerfixture")
        yield ac


@pytest_asyncio.fixture(scope="function")
async def order_factory(initialize_test_db):
    """A factory that writes orders straight into the order store.

    `items` is a list of (name, quantity, line_total) tuples and `coupons`
    a list of (code, discount_amount) tuples.
    """
    sequence = itertools.count(1)

    async def _factory(
        total: float,
        date_created: datetime.datetime,
        status: str = "completed",
        email: str = "buyer@example.com",
        first_name: str = "Ada",
        last_name: str = "Buyer",
        items: tuple = (),
        coupons: tuple = (),
    ) -> Order:
        order = await Order.create(
            order_id=f"T{next(sequence):06d}",
            status=status,
            total=total,
            billing_email=email,
            billing_first_name=first_name,
            billing_last_name=last_name,
            date_created=date_created,
        )
        for name, quantity, line_total in items:
            await OrderItem.create(
                order=order, name=name, quantity=quantity,
                price_at_purchase=line_total / quantity, line_total=line_total,
            )
        for code, discount_amount in coupons:
            await CouponLine.create(order=order, code=code, discount_amount=discount_amount)
        return order

    return _factory


@pytest_asyncio.fixture(scope="function")
async def refund_factory(initialize_test_db):
    async def _factory(order: Order, amount: float, date_created: datetime.datetime) -> Refund:
        return await Refund.create(order=order, amount=amount, date_created=date_created)

    return _factory
