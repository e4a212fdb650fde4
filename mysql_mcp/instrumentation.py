# instrumentation.py
import json
import sys
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from loguru import logger

from .models import QueryLogEntry

T = TypeVar("T")

STDERR_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function} - {message}"


def _is_query_log(record) -> bool:
    return record["extra"].get("query_log", False)


def configure_logging(level: str = "INFO", audit_log: Optional[str] = None) -> None:
    """
    Send all logs to stderr (stdout carries the MCP stream). With `audit_log`,
    query log entries are also appended to that file, one JSON object per line.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=STDERR_FORMAT)
    if audit_log:
        logger.add(audit_log, level="INFO", format="{message}", filter=_is_query_log, enqueue=True)


def log_query(entry: QueryLogEntry) -> None:
    logger.bind(query_log=True).info(json.dumps(entry.to_payload(), default=str))


async def instrumented(
    operation: str,
    sql: str,
    params: Sequence[Any],
    action: Callable[[], Awaitable[T]],
) -> T:
    """Run `action`, log one query entry with its duration and outcome, and re-raise any failure."""
    start = time.perf_counter()
    try:
        result = await action()
    except Exception as e:
        log_query(QueryLogEntry(
            operation=operation,
            sql=sql,
            params=list(params),
            duration=(time.perf_counter() - start) * 1000,
            success=False,
            error=str(e) or type(e).__name__,
        ))
        raise
    log_query(QueryLogEntry(
        operation=operation,
        sql=sql,
        params=list(params),
        duration=(time.perf_counter() - start) * 1000,
        success=True,
        affected_rows=getattr(result, "affected_rows", None),
    ))
    return result
