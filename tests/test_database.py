import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from restaurant_api.database import build_engine, build_session_maker, init_db, is_sqlite_memory_url
from restaurant_api.models import Customer


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite+aiosqlite://", True),
        ("sqlite+aiosqlite:///:memory:", True),
        ("sqlite+aiosqlite:///orders.db", False),
        ("postgresql+psycopg://user:pw@db:5432/orders", False),
    ],
)
def test_is_sqlite_memory_url(url, expected):
    assert is_sqlite_memory_url(url) is expected


async def test_memory_database_shares_one_connection():
    engine = build_engine("sqlite+aiosqlite:///:memory:")

    assert isinstance(engine.pool, StaticPool)
    await engine.dispose()


async def test_file_database_sessions_do_not_share_transactions(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    assert not isinstance(engine.pool, StaticPool)
    await init_db(engine)
    session_maker = build_session_maker(engine)

    async with session_maker() as writer, session_maker() as bystander:
        writer.add(Customer(name="Jane Doe"))
        await writer.flush()

        await bystander.execute(select(func.count(Customer.id)))
        await bystander.rollback()
        await writer.commit()

    async with session_maker() as reader:
        count = (await reader.execute(select(func.count(Customer.id)))).scalar()

    assert count == 1
    await engine.dispose()
