import json

import pytest

from mysql_mcp import catalog
from mysql_mcp.errors import ProtocolError, ValidationError
from mysql_mcp.models import ColumnMetadata, TableMetadata
from mysql_mcp.query_templates import DESCRIBE_TABLE, LIST_TABLES


def test_catalog_queries_are_scoped_to_current_database():
    for sql in (LIST_TABLES, DESCRIBE_TABLE):
        assert "table_schema = DATABASE()" in sql
    # the table name is the only bound value, the schema never is
    assert DESCRIBE_TABLE.count("%s") == 1


async def test_list_tables(ctx, conn, pool):
    conn.responses[LIST_TABLES] = [{"table_name": "orders"}, {"table_name": b"users"}]
    tables = await catalog.list_tables(ctx)
    assert tables == [TableMetadata("orders"), TableMetadata("users")]
    assert conn.statements == [(LIST_TABLES, None)]
    assert pool.in_use == 0


async def test_describe_table_binds_only_the_table_name(ctx, conn):
    conn.responses[DESCRIBE_TABLE] = [
        {"column_name": "id", "data_type": "int"},
        {"column_name": "email", "data_type": "varchar"},
    ]
    columns = await catalog.describe_table(ctx, "users")
    assert columns == [ColumnMetadata("id", "int"), ColumnMetadata("email", "varchar")]
    assert conn.statements == [(DESCRIBE_TABLE, ["users"])]


@pytest.mark.parametrize("table", [None, ""])
async def test_describe_table_requires_name(ctx, conn, pool, table):
    with pytest.raises(ValidationError):
        await catalog.describe_table(ctx, table)
    assert conn.statements == []
    assert pool.acquired == 0


def test_schema_uri(ctx):
    assert catalog.schema_uri(ctx, "orders") == "mysql://db.internal:3307/orders/schema"


@pytest.mark.parametrize(
    "uri,table",
    [
        ("mysql://db.internal:3307/orders/schema", "orders"),
        ("mysql://db.internal:3307/order%20items/schema", "order items"),
        ("mysql://other:1/prefix/orders/schema", "orders"),
    ],
)
def test_table_from_uri(uri, table):
    assert catalog.table_from_uri(uri) == table


@pytest.mark.parametrize(
    "uri",
    [
        "mysql://db.internal:3307/orders",
        "mysql://db.internal:3307/orders/columns",
        "mysql://db.internal:3307/schema",
        "mysql://db.internal:3307/",
    ],
)
def test_table_from_uri_rejects_malformed(uri):
    with pytest.raises(ProtocolError, match="Invalid resource URI"):
        catalog.table_from_uri(uri)


async def test_list_schema_resources(ctx, conn):
    conn.responses[LIST_TABLES] = [{"table_name": "orders"}]
    resources = await catalog.list_schema_resources(ctx)
    assert len(resources) == 1
    assert str(resources[0].uri) == "mysql://db.internal:3307/orders/schema"
    assert resources[0].name == '"orders" database schema'
    assert resources[0].mimeType == "application/json"


async def test_read_schema_resource(ctx, conn, pool):
    conn.responses[DESCRIBE_TABLE] = [{"column_name": "id", "data_type": "int"}]
    text = await catalog.read_schema_resource(ctx, "mysql://db.internal:3307/orders/schema")
    assert json.loads(text) == [{"column_name": "id", "data_type": "int"}]
    assert conn.statements == [(DESCRIBE_TABLE, ["orders"])]
    assert pool.in_use == 0


async def test_read_schema_resource_bad_uri_runs_nothing(ctx, conn, pool):
    with pytest.raises(ProtocolError):
        await catalog.read_schema_resource(ctx, "mysql://db.internal:3307/orders/data")
    assert pool.acquired == 0
