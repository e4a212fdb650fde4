from .mysql_client import (
    AppContext,
    borrow_connection,
    close_pool,
    create_pool,
    execute_modify,
    execute_query,
    execute_read_only,
)

__all__ = [
    "AppContext",
    "borrow_connection",
    "close_pool",
    "create_pool",
    "execute_modify",
    "execute_query",
    "execute_read_only",
]
