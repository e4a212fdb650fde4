import json

import pytest
import aiomysql
from loguru import logger

from mysql_mcp.config import Settings
from mysql_mcp.db.mysql_client import AppContext

WRITE_KEYWORDS = ("INSERT", "UPDATE", "DELETE", "REPLACE", "CREATE", "DROP", "ALTER", "TRUNCATE")


def _escape(value):
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


class FakeResult:
    def __init__(self, message=None):
        self.message = message


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self._rows = []
        self.rowcount = -1
        self.lastrowid = None
        self._result = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.conn.cursors_closed += 1

    async def execute(self, sql, args=None):
        conn = self.conn
        conn.statements.append((sql, args))
        if args is not None:
            # same interpolation aiomysql does before sending the query
            sql % tuple(_escape(a) for a in args)
        upper = sql.strip().upper()
        outcome = conn.responses.get(sql, [])
        if isinstance(outcome, Exception):
            raise outcome
        if upper == "SET SESSION TRANSACTION READ ONLY":
            conn.read_only = True
            return 0
        if upper == "SET SESSION TRANSACTION READ WRITE":
            conn.read_only = False
            return 0
        if conn.read_only and conn.in_transaction and upper.startswith(WRITE_KEYWORDS):
            raise aiomysql.OperationalError(1792, "Cannot execute statement in a READ ONLY transaction.")
        if isinstance(outcome, dict):
            # modification outcome
            self.rowcount = outcome.get("affected_rows", 0)
            self.lastrowid = outcome.get("insert_id", 0)
            self._result = FakeResult(outcome.get("message"))
            self._rows = []
        else:
            self._rows = list(outcome)
            self.rowcount = len(self._rows)
        return self.rowcount

    async def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    async def fetchmany(self, size):
        rows, self._rows = self._rows[:size], self._rows[size:]
        return rows

    async def fetchone(self):
        if not self._rows:
            return None
        return self._rows.pop(0)


class FakeConnection:
    """Records every statement and transaction call made on it."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.statements = []
        self.read_only = False
        self.in_transaction = False
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self.cursors_closed = 0
        self.fail_commit = None
        self.closed = False

    def cursor(self, *cursor_classes):
        return FakeCursor(self)

    async def begin(self):
        self.begins += 1
        self.in_transaction = True

    async def commit(self):
        if self.fail_commit is not None:
            raise self.fail_commit
        self.commits += 1
        self.in_transaction = False

    async def rollback(self):
        self.rollbacks += 1
        self.in_transaction = False

    def close(self):
        self.closed = True

    @property
    def issued(self):
        return [sql for sql, _ in self.statements]


class FakePool:
    def __init__(self, connection=None, acquire_error=None):
        self.connection = connection or FakeConnection()
        self.acquire_error = acquire_error
        self.in_use = 0
        self.acquired = 0
        self.released = 0

    async def acquire(self):
        if self.acquire_error is not None:
            raise self.acquire_error
        self.in_use += 1
        self.acquired += 1
        return self.connection

    def release(self, conn):
        assert conn is self.connection
        self.in_use -= 1
        self.released += 1


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def pool(conn):
    return FakePool(conn)


@pytest.fixture
def settings():
    return Settings(host="db.internal", port=3307, user="app", password="secret", database="shop")


@pytest.fixture
def ctx(settings, pool):
    return AppContext(settings=settings, pool=pool)


@pytest.fixture
def query_logs():
    """Collect the query log entries emitted through loguru."""
    entries = []
    handler_id = logger.add(
        lambda message: entries.append(json.loads(message.record["message"])),
        filter=lambda record: record["extra"].get("query_log", False),
        format="{message}",
    )
    yield entries
    logger.remove(handler_id)
