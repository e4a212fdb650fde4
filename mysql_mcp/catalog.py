# catalog.py
# Table and column listings read straight from information_schema on every call.
from typing import List
from urllib.parse import quote, unquote, urlparse

from mcp import types

from .config import SCHEMA_PATH
from .db.mysql_client import AppContext, execute_query
from .errors import ProtocolError, ValidationError
from .models import ColumnMetadata, TableMetadata, to_json
from .query_templates import DESCRIBE_TABLE, LIST_TABLES


async def list_tables(ctx: AppContext) -> List[TableMetadata]:
    rows = await execute_query(ctx, LIST_TABLES)
    return [TableMetadata.from_row(r) for r in rows]


async def describe_table(ctx: AppContext, table: str) -> List[ColumnMetadata]:
    if not table:
        raise ValidationError("Table name is required")
    rows = await execute_query(ctx, DESCRIBE_TABLE, [table])
    return [ColumnMetadata.from_row(r) for r in rows]


def schema_uri(ctx: AppContext, table_name: str) -> str:
    return f"{ctx.settings.resource_base}{quote(table_name)}/{SCHEMA_PATH}"


def table_from_uri(uri: str) -> str:
    """Return <table> from a ".../<table>/schema" URI, or raise ProtocolError."""
    segments = urlparse(str(uri)).path.split("/")
    schema = segments.pop() if segments else ""
    table_name = unquote(segments.pop()) if segments else ""
    if schema != SCHEMA_PATH or not table_name:
        raise ProtocolError("Invalid resource URI")
    return table_name


async def list_schema_resources(ctx: AppContext) -> List[types.Resource]:
    tables = await list_tables(ctx)
    return [
        types.Resource(
            uri=schema_uri(ctx, t.table_name),
            name=f'"{t.table_name}" database schema',
            mimeType="application/json",
        )
        for t in tables
    ]


async def read_schema_resource(ctx: AppContext, uri: str) -> str:
    table_name = table_from_uri(uri)
    columns = await describe_table(ctx, table_name)
    return to_json(columns)
