import psycopg
import pytest

from scout.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, fetch_val


class FakeCursor:
    def __init__(self, rows=None, rowcount=0, error=None):
        self.rows = rows or []
        self.rowcount = rowcount
        self.error = error
        self.executed = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, query, params):
        self.executed.append((query, params))
        if self.error:
            raise self.error

    async def fetchone(self):
        return self.rows[0] if self.rows else None

    async def fetchall(self):
        return self.rows


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor

    def cursor(self):
        return self._cursor


@pytest.mark.asyncio
async def test_fetch_helpers_use_given_connection():
    cursor = FakeCursor(rows=[{"total": 3, "other": 1}])
    conn = FakeConnection(cursor)

    assert await fetch_one("SELECT 1", connection=conn) == {"total": 3, "other": 1}
    assert await fetch_val("SELECT COUNT(*)", (1,), connection=conn) == 3
    assert await fetch_all("SELECT *", connection=conn) == [{"total": 3, "other": 1}]
    assert cursor.executed[1] == ("SELECT COUNT(*)", (1,))


@pytest.mark.asyncio
async def test_fetch_val_without_rows():
    assert await fetch_val("SELECT 1", connection=FakeConnection(FakeCursor())) is None


@pytest.mark.asyncio
async def test_execute_returns_rowcount():
    conn = FakeConnection(FakeCursor(rowcount=2))

    assert await execute_query("DELETE FROM deliveries", connection=conn) == 2


@pytest.mark.asyncio
async def test_psycopg_errors_are_wrapped():
    conn = FakeConnection(FakeCursor(error=psycopg.Error("relation does not exist")))

    with pytest.raises(DatabaseError) as exc_info:
        await fetch_one("SELECT * FROM missing", connection=conn)

    assert exc_info.value.operation == "fetch_one"
    assert "relation does not exist" in str(exc_info.value)
