"""MySQL over the Model Context Protocol: read-only queries, transactional writes and schema browsing."""

__version__ = "0.1.0"
