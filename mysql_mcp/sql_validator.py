# sql_validator.py
"""
Best-effort SQL denylist.

This is a handful of regexes, not a parser. It catches obvious statement
stacking (`SELECT 1; DROP TABLE x`), EXEC/EXECUTE and writing results to a
server-side file. Anything that does not match is treated as safe, so it must
not be relied on as injection protection; use bound parameters and MySQL
privileges for that.
"""
import re

from .config import Limits
from .errors import LimitError, SecurityError
from .models import SecurityVerdict

DANGEROUS_PATTERNS = [
    re.compile(r";\s*DROP\s+", re.IGNORECASE),
    re.compile(r";\s*DELETE\s+FROM\s+", re.IGNORECASE),
    re.compile(r";\s*UPDATE\s+", re.IGNORECASE),
    re.compile(r";\s*INSERT\s+", re.IGNORECASE),
    re.compile(r"EXECUTE\s+", re.IGNORECASE),
    re.compile(r"EXEC\s+", re.IGNORECASE),
    re.compile(r"INTO\s+OUTFILE", re.IGNORECASE),
    re.compile(r"INTO\s+DUMPFILE", re.IGNORECASE),
]


def check_query_limits(sql: str, max_length: int) -> SecurityVerdict:
    if len(sql) > max_length:
        return SecurityVerdict(False, f"SQL statement exceeds the maximum length ({max_length} characters)")
    return SecurityVerdict(True)


def check_sql_security(sql: str) -> SecurityVerdict:
    for pattern in DANGEROUS_PATTERNS:
        if pattern.search(sql):
            return SecurityVerdict(False, "potential SQL injection detected")
    return SecurityVerdict(True)


def guard_statement(sql: str, limits: Limits) -> None:
    """Raise SecurityError or LimitError if the statement may not run."""
    verdict = check_sql_security(sql)
    if not verdict.safe:
        raise SecurityError(verdict.reason)
    verdict = check_query_limits(sql, limits.max_query_length)
    if not verdict.safe:
        raise LimitError(verdict.reason)


def classify_statement(sql: str) -> str:
    # first keyword, used as a log label and for routing SELECTs away from mysql_execute
    tokens = sql.split(None, 1)
    return tokens[0].upper() if tokens else ""
