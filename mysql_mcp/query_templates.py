# query_templates.py
# Fixed SQL issued by the server itself. Every catalog query is scoped to
# DATABASE() so other schemas on the same server never show up.

LIST_TABLES = (
    "SELECT table_name AS table_name FROM information_schema.tables "
    "WHERE table_schema = DATABASE()"
)

DESCRIBE_TABLE = (
    "SELECT column_name AS column_name, data_type AS data_type "
    "FROM information_schema.columns "
    "WHERE table_schema = DATABASE() AND table_name = %s"
)

SET_SESSION_READ_ONLY = "SET SESSION TRANSACTION READ ONLY"
SET_SESSION_READ_WRITE = "SET SESSION TRANSACTION READ WRITE"
