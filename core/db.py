"""
Database engine construction, startup wait, and migration helpers.
"""

from __future__ import annotations

import os
import time
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

import core.config as config
from core.errors import StoreUnavailableError


def _is_sqlite_url(database_url: str) -> bool:
    return database_url.lower().startswith("sqlite")


def _enable_sqlite_pragmas(engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, conn_record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.execute(f"PRAGMA busy_timeout={int(config.DB_POOL_TIMEOUT_SECONDS * 1000)};")
        cur.close()


def build_engine(database_url: Optional[str] = None):
    """Create the pooled engine every store operation draws connections from."""
    url = database_url or config.DATABASE_URL
    if not url:
        config.validate_and_prepare_config()
        url = config.DATABASE_URL

    engine_kwargs = {"pool_pre_ping": True}
    if _is_sqlite_url(url):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": config.DB_POOL_TIMEOUT_SECONDS,
        }
    else:
        engine_kwargs.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_POOL_MAX_OVERFLOW,
            pool_timeout=config.DB_POOL_TIMEOUT_SECONDS,
            pool_recycle=config.DB_POOL_RECYCLE_SECONDS,
            connect_args={
                "connect_timeout": config.DB_CONNECT_TIMEOUT_SECONDS,
                "options": f"-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}",
            },
        )

    engine = create_engine(url, **engine_kwargs)
    if _is_sqlite_url(url):
        _enable_sqlite_pragmas(engine)
    return engine


def wait_for_database(
    engine,
    retries: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> None:
    """Block until the database answers ``SELECT 1`` or the retries run out."""
    max_retries = max(1, retries if retries is not None else config.DB_CONNECT_RETRIES)
    delay = config.DB_CONNECT_RETRY_SECONDS if delay_seconds is None else delay_seconds

    for attempt in range(1, max_retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            config.logger.info("Database connection established")
            return
        except (OperationalError, PoolTimeoutError) as exc:
            config.logger.warning(
                f"Database connection attempt {attempt}/{max_retries} failed: {exc}"
            )
            if attempt == max_retries:
                raise StoreUnavailableError(
                    "Failed to connect to database after maximum retries"
                ) from exc
            time.sleep(delay)


def _get_alembic_config(database_url: str):
    try:
        from alembic.config import Config
    except ImportError as exc:
        raise RuntimeError("Alembic is required for migrations") from exc

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    alembic_cfg = Config(os.path.join(base_dir, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(base_dir, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return alembic_cfg


def _engine_url(engine) -> str:
    return engine.url.render_as_string(hide_password=False)


def get_schema_revisions(engine) -> tuple[Optional[str], Optional[str]]:
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    alembic_cfg = _get_alembic_config(_engine_url(engine))
    script = ScriptDirectory.from_config(alembic_cfg)
    head_revision = script.get_current_head()
    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        current_revision = context.get_current_revision()
    return current_revision, head_revision


def ensure_schema(engine) -> None:
    """Bring the schema to the Alembic head; a no-op when already current."""
    from alembic import command

    current_rev, head_rev = get_schema_revisions(engine)
    if current_rev == head_rev:
        config.logger.info("Database already initialized")
        return

    if config.AUTO_MIGRATE_ON_STARTUP:
        config.logger.info(
            "Running migrations...",
            extra={"schema_revision": current_rev, "schema_expected": head_rev},
        )
        alembic_cfg = _get_alembic_config(_engine_url(engine))
        command.upgrade(alembic_cfg, "head")
        new_current, _ = get_schema_revisions(engine)
        if new_current != head_rev:
            raise RuntimeError("Database migration did not reach expected revision")
        config.logger.info("Database migrations completed successfully")
    else:
        raise RuntimeError(
            f"Database schema out of date (current={current_rev}, expected={head_rev}). "
            "Run 'memorygraph migrate' or set AUTO_MIGRATE_ON_STARTUP=true for dev."
        )


def init_db(engine) -> None:
    """Wait for the database and make sure the schema is in place."""
    config.logger.info("Connecting to database...")
    wait_for_database(engine)
    ensure_schema(engine)
    config.logger.info("Database initialized")
