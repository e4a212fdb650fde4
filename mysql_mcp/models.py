# models.py
# Plain containers passed between the executors, the instrumentation and the tools.
import json
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SecurityVerdict:
    safe: bool
    reason: Optional[str] = None


@dataclass
class ExecuteResult:
    success: bool
    affected_rows: Optional[int] = None
    insert_id: Optional[int] = None
    message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        # key names follow what clients of the original server expect
        payload = {
            "success": self.success,
            "affectedRows": self.affected_rows,
            "insertId": self.insert_id,
            "message": self.message,
        }
        return {k: v for k, v in payload.items() if v is not None}


@dataclass
class QueryLogEntry:
    operation: str
    sql: str
    params: List[Any]
    duration: float   # milliseconds
    success: bool
    error: Optional[str] = None
    affected_rows: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "type": "query_log",
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation,
            "sql": self.sql,
            "params": self.params,
            "duration": self.duration,
            "success": self.success,
            "error": self.error,
            "affectedRows": self.affected_rows,
        }
        return {k: v for k, v in payload.items() if v is not None}


def _text(value: Any) -> str:
    # information_schema columns can come back as bytes on some server versions
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


@dataclass(frozen=True)
class TableMetadata:
    table_name: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TableMetadata":
        return cls(table_name=_text(row["table_name"]))


@dataclass(frozen=True)
class ColumnMetadata:
    column_name: str
    data_type: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ColumnMetadata":
        return cls(column_name=_text(row["column_name"]), data_type=_text(row["data_type"]))


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    """Pretty JSON for a content block; driver values (Decimal, datetime, bytes, SET) become strings."""
    return json.dumps(value, indent=2, default=_json_default, ensure_ascii=False)
