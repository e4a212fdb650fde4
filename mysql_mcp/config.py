# config.py
# Connection settings come from the environment (MYSQL_*), limits are fixed here.
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

SERVER_NAME = "mysql-mcp"
SERVER_VERSION = "0.1.0"

# Path segment that marks a table schema resource: <table>/schema
SCHEMA_PATH = "schema"

# Pool size; requests beyond this wait on acquisition
CONNECTION_LIMIT = 10

# Row/size limits
MAX_QUERY_LENGTH = 4096
MAX_ROWS_RETURN = 1000
QUERY_TIMEOUT_MS = 30000   # declared for clients, not applied to driver calls


@dataclass(frozen=True)
class Limits:
    max_query_length: int = MAX_QUERY_LENGTH
    max_rows: int = MAX_ROWS_RETURN
    query_timeout_ms: int = QUERY_TIMEOUT_MS


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = ""
    connection_limit: int = CONNECTION_LIMIT
    limits: Limits = field(default_factory=Limits)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from MYSQL_HOST, MYSQL_PORT, MYSQL_USER, MYSQL_PASS and MYSQL_DB.
        Empty values fall back to the defaults, except the password and database
        which are allowed to be empty.
        """
        env = os.environ if environ is None else environ
        raw_port = env.get("MYSQL_PORT") or "3306"
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"MYSQL_PORT must be an integer, got {raw_port!r}")
        return cls(
            host=env.get("MYSQL_HOST") or "127.0.0.1",
            port=port,
            user=env.get("MYSQL_USER") or "root",
            password=env.get("MYSQL_PASS", ""),
            database=env.get("MYSQL_DB", ""),
        )

    @property
    def resource_base(self) -> str:
        return f"mysql://{self.host}:{self.port}/"
