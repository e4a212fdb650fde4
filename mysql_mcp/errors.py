# errors.py


class MySQLMCPError(Exception):
    """Base class for failures surfaced to MCP clients."""


class DatabaseConnectionError(MySQLMCPError):
    """The pool could not hand out a connection (server unreachable, auth failure)."""


class SecurityError(MySQLMCPError):
    """Statement matched the SQL denylist."""


class LimitError(MySQLMCPError):
    """Statement longer than the configured maximum."""


class ValidationError(MySQLMCPError):
    """Missing or unusable tool argument."""


class DatabaseError(MySQLMCPError):
    """MySQL reported an error while running a statement."""


class ProtocolError(MySQLMCPError):
    """Unknown tool name or malformed resource URI."""
