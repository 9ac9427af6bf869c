import os

# Must be set before restaurant_api is imported: the engine is built at import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from restaurant_api.database import build_engine, build_session_maker, get_db, init_db
from restaurant_api.main import app
from restaurant_api.services.store import StoreGateway


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def gateway(session):
    return StoreGateway(session)


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def menu(gateway):
    """One customer, one restaurant and three menu items (one unavailable)."""
    customer = await gateway.create_customer({"name": "Jane Doe", "email": "jane@example.com"})
    restaurant = await gateway.create_restaurant({"name": "Pizza Palace"})
    pizza = await gateway.create_menu_item(
        restaurant.id, {"name": "Pizza Margherita", "price": Decimal("5.00")}
    )
    salad = await gateway.create_menu_item(
        restaurant.id, {"name": "Caesar Salad", "price": Decimal("3.00")}
    )
    soup = await gateway.create_menu_item(
        restaurant.id,
        {"name": "Soup of the Day", "price": Decimal("4.50"), "is_available": False},
    )
    return {
        "customer": customer,
        "restaurant": restaurant,
        "pizza": pizza,
        "salad": salad,
        "soup": soup,
    }
