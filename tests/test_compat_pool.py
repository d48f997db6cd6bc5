import dataclasses
import logging
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from app.services.dialect import CompatPool, ResultHeader


@pytest_asyncio.fixture
async def pool(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shim.db'}", poolclass=NullPool)
    pool = CompatPool(engine)
    await pool.execute(
        "CREATE TABLE dishes ("
        "id INTEGER PRIMARY KEY, name VARCHAR(50) UNIQUE NOT NULL, "
        "price NUMERIC(10, 2), tags TEXT)"
    )
    yield pool
    await pool.end()


@pytest.mark.asyncio
async def test_insert_reports_insert_id(pool):
    header, fields = await pool.execute(
        "INSERT INTO dishes (name, price) VALUES (?, ?)", ["Dal", Decimal("120.50")]
    )
    assert isinstance(header, ResultHeader)
    assert header.insert_id == 1
    assert header.affected_rows == 1
    assert fields == []

    header, _ = await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Naan"])
    assert header.insert_id == 2


@pytest.mark.asyncio
async def test_insert_id_from_lastrowid_without_returning(pool):
    pool.translator = dataclasses.replace(pool.translator, supports_returning=False)
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    header, _ = await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Naan"])
    assert header.insert_id == 2
    assert header.affected_rows == 1


@pytest.mark.asyncio
async def test_insert_that_writes_nothing_has_no_insert_id(pool):
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    header, _ = await pool.execute(
        "INSERT INTO dishes (name) VALUES (?) ON CONFLICT DO NOTHING", ["Dal"]
    )
    assert header.insert_id is None
    assert header.affected_rows == 0


@pytest.mark.asyncio
async def test_select_returns_rows_and_fields(pool):
    await pool.execute("INSERT INTO dishes (name, price) VALUES (?, ?)", ["Dal", 120])
    rows, fields = await pool.execute("SELECT id, name FROM dishes WHERE name = ?", ["Dal"])
    assert rows == [{"id": 1, "name": "Dal"}]
    assert fields == ["id", "name"]


@pytest.mark.asyncio
async def test_update_and_delete_headers(pool):
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Naan"])

    header, _ = await pool.execute("UPDATE dishes SET price = ? WHERE id > ?", [10, 0])
    assert header.affected_rows == 2
    assert header.insert_id is None

    header, _ = await pool.execute("DELETE FROM dishes WHERE id = ?", [99])
    assert header.affected_rows == 0


@pytest.mark.asyncio
async def test_json_params_are_serialised(pool):
    await pool.execute("INSERT INTO dishes (name, tags) VALUES (?, ?)", ["Dal", ["veg", "hot"]])
    rows, _ = await pool.execute("SELECT tags FROM dishes")
    assert rows[0]["tags"] == '["veg", "hot"]'


@pytest.mark.asyncio
async def test_bulk_insert(pool):
    header, _ = await pool.query(
        "INSERT INTO dishes (name, price) VALUES ?",
        [[("Dal", 100), ("Naan", 30), ("Rice", 60)]],
    )
    assert header.affected_rows == 3
    assert header.insert_id is None

    rows, _ = await pool.execute("SELECT COUNT(*) AS count FROM dishes")
    assert rows[0]["count"] == 3


@pytest.mark.asyncio
async def test_errors_propagate(pool):
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    with pytest.raises(Exception):
        await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    rows, _ = await pool.execute("SELECT COUNT(*) AS count FROM dishes")
    assert rows[0]["count"] == 1


@pytest.mark.asyncio
async def test_errors_log_caller_sql(pool, caplog):
    await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    with caplog.at_level(logging.ERROR, logger="app.services.dialect.pool"):
        with pytest.raises(Exception):
            await pool.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
    assert "SQL: INSERT INTO dishes (name) VALUES (?)" in caplog.messages


@pytest.mark.asyncio
async def test_transaction_commits(pool):
    async with pool.transaction() as conn:
        await conn.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
        await conn.execute("INSERT INTO dishes (name) VALUES (?)", ["Naan"])

    rows, _ = await pool.execute("SELECT name FROM dishes ORDER BY id")
    assert [r["name"] for r in rows] == ["Dal", "Naan"]


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(pool):
    with pytest.raises(RuntimeError):
        async with pool.transaction() as conn:
            await conn.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
            raise RuntimeError("boom")

    rows, _ = await pool.execute("SELECT COUNT(*) AS count FROM dishes")
    assert rows[0]["count"] == 0


@pytest.mark.asyncio
async def test_manual_connection_rollback(pool):
    conn = await pool.get_connection()
    try:
        await conn.begin_transaction()
        assert conn.in_transaction
        await conn.execute("INSERT INTO dishes (name) VALUES (?)", ["Dal"])
        await conn.rollback()
        assert not conn.in_transaction
    finally:
        await conn.release()
        await conn.release()

    rows, _ = await pool.execute("SELECT COUNT(*) AS count FROM dishes")
    assert rows[0]["count"] == 0


@pytest.mark.asyncio
async def test_reset_identity_rejects_bad_names(pool):
    async with pool.transaction() as conn:
        await conn.reset_identity("dishes")
        with pytest.raises(ValueError):
            await conn.reset_identity("dishes; DROP TABLE dishes")


@pytest.mark.asyncio
async def test_column_exists(pool):
    assert await pool.column_exists("dishes", "price")
    assert not await pool.column_exists("dishes", "calories")


@pytest.mark.asyncio
async def test_test_connection(pool):
    assert await pool.test_connection() is True
