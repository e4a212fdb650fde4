# db/mysql_client.py
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import aiomysql
from loguru import logger

from ..config import Settings
from ..errors import DatabaseConnectionError, DatabaseError
from ..instrumentation import instrumented
from ..models import ExecuteResult
from ..query_templates import SET_SESSION_READ_ONLY, SET_SESSION_READ_WRITE
from ..sql_validator import classify_statement, guard_statement

Row = Dict[str, Any]


@dataclass
class AppContext:
    """Everything a request handler needs: settings plus the shared pool."""
    settings: Settings
    pool: Any   # aiomysql.Pool, or anything with acquire()/release()


async def create_pool(settings: Settings) -> aiomysql.Pool:
    return await aiomysql.create_pool(
        host=settings.host,
        port=settings.port,
        user=settings.user,
        password=settings.password,
        db=settings.database or None,
        minsize=1,
        maxsize=settings.connection_limit,
        autocommit=True,
        charset="utf8mb4",
    )


async def close_pool(pool: aiomysql.Pool) -> None:
    pool.close()
    await pool.wait_closed()


@asynccontextmanager
async def borrow_connection(pool):
    """Acquire a pooled connection and hand it back on every exit path."""
    try:
        conn = await pool.acquire()
    except (aiomysql.Error, OSError) as e:
        raise DatabaseConnectionError(f"could not get a connection from the pool: {_driver_message(e)}") from e
    try:
        yield conn
    finally:
        pool.release(conn)


def _driver_message(exc: BaseException) -> str:
    # PyMySQL errors carry (code, message)
    if len(exc.args) == 2 and isinstance(exc.args[0], int):
        return str(exc.args[1])
    return str(exc)


async def _run(conn, sql: str, params: Optional[Sequence[Any]] = None, max_rows: Optional[int] = None) -> List[Row]:
    try:
        async with conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(sql, list(params) if params else None)
            if max_rows is None:
                return list(await cur.fetchall())
            rows = list(await cur.fetchmany(max_rows))
            if await cur.fetchone() is not None:
                logger.warning(f"result truncated to {max_rows} rows: {sql[:200]}")
            return rows
    except aiomysql.Error as e:
        raise DatabaseError(_driver_message(e)) from e


async def _rollback_quietly(conn) -> None:
    try:
        await conn.rollback()
    except aiomysql.Error as e:
        logger.warning(f"rollback failed: {_driver_message(e)}")


async def _restore_read_write(conn) -> None:
    try:
        await _run(conn, SET_SESSION_READ_WRITE)
    except DatabaseError as e:
        # a session stuck in read-only mode must not go back into the pool
        logger.warning(f"could not restore read-write session, closing connection: {e}")
        conn.close()


async def execute_query(ctx: AppContext, sql: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
    """Run one statement with bound parameters and return its rows (catalog and general reads)."""
    params = list(params or [])
    async with borrow_connection(ctx.pool) as conn:
        async def action():
            guard_statement(sql, ctx.settings.limits)
            return await _run(conn, sql, params)

        return await instrumented("SELECT", sql, params, action)


async def execute_read_only(ctx: AppContext, sql: str) -> List[Row]:
    """
    Snapshot read: the statement runs inside a read-only transaction that is
    always rolled back. The session is switched back to read-write before the
    connection returns to the pool, whether or not the statement succeeded.
    Raises SecurityError/LimitError/DatabaseError.
    """
    limits = ctx.settings.limits
    async with borrow_connection(ctx.pool) as conn:
        async def action():
            guard_statement(sql, limits)
            await _run(conn, SET_SESSION_READ_ONLY)
            try:
                await conn.begin()
                try:
                    return await _run(conn, sql, max_rows=limits.max_rows)
                finally:
                    await _rollback_quietly(conn)
            finally:
                await _restore_read_write(conn)

        return await instrumented("SELECT", sql, [], action)


def _ok_message(cur) -> Optional[str]:
    # server info string from the OK packet, e.g. "Rows matched: 1  Changed: 1  Warnings: 0"
    message = getattr(getattr(cur, "_result", None), "message", None)
    if isinstance(message, (bytes, bytearray)):
        message = message.decode("utf-8", "replace")
    return message or None


async def execute_modify(ctx: AppContext, sql: str, params: Optional[Sequence[Any]] = None) -> ExecuteResult:
    """
    Run a data modification statement in its own transaction. Any failure after
    the connection is acquired (guard rejection, database error, params that do
    not match the %s placeholders) comes back as ExecuteResult(success=False)
    instead of raising; a failed statement is rolled back.
    """
    params = list(params or [])
    operation = classify_statement(sql)
    async with borrow_connection(ctx.pool) as conn:
        async def action():
            guard_statement(sql, ctx.settings.limits)
            await conn.begin()
            try:
                async with conn.cursor() as cur:
                    await cur.execute(sql, params or None)
                    result = ExecuteResult(
                        success=True,
                        affected_rows=cur.rowcount,
                        insert_id=cur.lastrowid,
                        message=_ok_message(cur),
                    )
                await conn.commit()
            except Exception as e:
                await _rollback_quietly(conn)
                if isinstance(e, aiomysql.Error):
                    raise DatabaseError(_driver_message(e)) from e
                raise
            return result

        try:
            return await instrumented(operation, sql, params, action)
        except Exception as e:
            return ExecuteResult(success=False, message=str(e) or type(e).__name__)
