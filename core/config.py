"""
Shared configuration for MemoryGraph core.
"""

from __future__ import annotations

import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("memorygraph")

SERVICE_NAME = "MemoryGraph"
SERVICE_VERSION = "0.1.0"


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/memorygraph.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Connection pool
DB_POOL_SIZE = _get_int("DB_POOL_SIZE", 10)
DB_POOL_MAX_OVERFLOW = _get_int("DB_POOL_MAX_OVERFLOW", 0)
DB_POOL_TIMEOUT_SECONDS = _get_float("DB_POOL_TIMEOUT_SECONDS", 10.0)
DB_POOL_RECYCLE_SECONDS = _get_int("DB_POOL_RECYCLE_SECONDS", 1800)
DB_CONNECT_TIMEOUT_SECONDS = _get_int("DB_CONNECT_TIMEOUT_SECONDS", 10)
DB_STATEMENT_TIMEOUT_MS = _get_int("DB_STATEMENT_TIMEOUT_MS", 30000)

# Startup wait (bootstrap only; store operations never retry)
DB_CONNECT_RETRIES = _get_int("DB_CONNECT_RETRIES", 30)
DB_CONNECT_RETRY_SECONDS = _get_float("DB_CONNECT_RETRY_SECONDS", 2.0)

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Search
FULLTEXT_SEARCH_ENABLED = _get_bool("FULLTEXT_SEARCH_ENABLED", True)
FULLTEXT_SEARCH_LANGUAGE = os.environ.get("FULLTEXT_SEARCH_LANGUAGE", "english").strip().lower()

# Request/input limits
MAX_BATCH_ITEMS = _get_int("MEMORYGRAPH_MAX_BATCH_ITEMS", 1000)
MAX_NAME_LENGTH = _get_int("MEMORYGRAPH_MAX_NAME_LENGTH", 1000)
MAX_TEXT_LENGTH = _get_int("MEMORYGRAPH_MAX_TEXT_LENGTH", 20000)
MAX_QUERY_LENGTH = _get_int("MEMORYGRAPH_MAX_QUERY_LENGTH", 4000)

# MCP transport defaults for the CLI
MCP_TRANSPORT = os.environ.get("MCP_TRANSPORT", "stdio").strip().lower()
MCP_HOST = os.environ.get("MCP_HOST", "127.0.0.1")
MCP_PORT = _get_int("MCP_PORT", 3001)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        is_sqlite_url = DATABASE_URL.lower().startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if DB_POOL_SIZE <= 0:
        errors.append("DB_POOL_SIZE must be positive")
    if DB_POOL_TIMEOUT_SECONDS <= 0:
        errors.append("DB_POOL_TIMEOUT_SECONDS must be positive")
    if MAX_BATCH_ITEMS <= 0:
        errors.append("MEMORYGRAPH_MAX_BATCH_ITEMS must be positive")
    if MCP_TRANSPORT not in {"stdio", "sse", "http"}:
        errors.append("MCP_TRANSPORT must be 'stdio', 'sse', or 'http'")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
