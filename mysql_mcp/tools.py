# tools.py
# Tool table and dispatch. Read and catalog tools raise on failure; mysql_execute
# reports failures in its payload with isError set.
from typing import Any, Dict, List, Optional

from mcp import types

from . import catalog
from .config import Limits
from .db.mysql_client import AppContext, execute_modify, execute_read_only
from .errors import ProtocolError, ValidationError
from .models import to_json
from .sql_validator import classify_statement


def tool_definitions(limits: Limits) -> List[types.Tool]:
    return [
        types.Tool(
            name="mysql_query",
            description=(
                "Execute read-only SELECT queries against the MySQL database.\n"
                f"- Maximum query length: {limits.max_query_length} characters\n"
                f"- Maximum result rows: {limits.max_rows}\n"
                f"- Query timeout: {limits.query_timeout_ms // 1000} seconds"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sql": {"type": "string", "description": "SQL SELECT query to execute"},
                },
                "required": ["sql"],
            },
        ),
        types.Tool(
            name="mysql_execute",
            description=(
                "Execute data modification queries (INSERT/UPDATE/DELETE).\n"
                "- Returns affected rows count and insert ID\n"
                "- Supports parameterized queries (use %s placeholders)\n"
                "- Automatic transaction handling"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sql": {"type": "string", "description": "SQL statement (INSERT, UPDATE, or DELETE)"},
                    "params": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Parameters for the SQL statement",
                    },
                },
                "required": ["sql"],
            },
        ),
        types.Tool(
            name="list_tables",
            description="List all tables in current database",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        types.Tool(
            name="describe_table",
            description="Show table structure",
            inputSchema={
                "type": "object",
                "properties": {
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["table"],
            },
        ),
    ]


def _envelope(payload: Any, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=to_json(payload))],
        isError=is_error,
    )


def _required_sql(arguments: Dict[str, Any]) -> str:
    sql = arguments.get("sql")
    if not sql or not isinstance(sql, str):
        raise ValidationError("sql is required")
    return sql


async def mysql_query(ctx: AppContext, arguments: Dict[str, Any]) -> types.CallToolResult:
    rows = await execute_read_only(ctx, _required_sql(arguments))
    return _envelope(rows)


async def mysql_execute(ctx: AppContext, arguments: Dict[str, Any]) -> types.CallToolResult:
    sql = _required_sql(arguments)
    if classify_statement(sql) == "SELECT":
        raise ValidationError("Use mysql_query for SELECT statements")
    params = arguments.get("params") or []
    if not isinstance(params, list):
        raise ValidationError("params must be an array")
    result = await execute_modify(ctx, sql, params)
    return _envelope(result.to_payload(), is_error=not result.success)


async def list_tables(ctx: AppContext, arguments: Dict[str, Any]) -> types.CallToolResult:
    return _envelope(await catalog.list_tables(ctx))


async def describe_table(ctx: AppContext, arguments: Dict[str, Any]) -> types.CallToolResult:
    return _envelope(await catalog.describe_table(ctx, arguments.get("table")))


HANDLERS = {
    "mysql_query": mysql_query,
    "mysql_execute": mysql_execute,
    "list_tables": list_tables,
    "describe_table": describe_table,
}


async def call_tool(ctx: AppContext, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
    handler = HANDLERS.get(name)
    if handler is None:
        raise ProtocolError(f"Unknown tool: {name}")
    return await handler(ctx, arguments or {})
