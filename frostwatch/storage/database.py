"""SQLite connections, schema migrations and error translation."""

import importlib
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path

from frostwatch.exceptions import PersistenceError

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "frostwatch.storage.migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"
BUSY_TIMEOUT_SECONDS = 10.0


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection in WAL mode with foreign keys on."""
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_db(db_path: str | Path) -> list[str]:
    """Create the database (and its directory) if needed, then migrate it."""
    path = Path(db_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"create database directory failed: {e}") from e
    with translate_errors("initialize database"), closing(connect(path)) as conn:
        return run_migrations(conn)


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply pending migrations in name order. Returns the names applied."""
    with conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_versions ("
            " version TEXT PRIMARY KEY,"
            " applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
        )

    applied = []
    for name in pending_migrations(conn):
        module = importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")
        with conn:
            module.up(conn)
            conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
        logger.debug("Applied migration %s", name)
        applied.append(name)
    return applied


def pending_migrations(conn: sqlite3.Connection) -> list[str]:
    done = {r["version"] for r in conn.execute("SELECT version FROM schema_versions")}
    available = sorted(p.stem for p in MIGRATIONS_DIR.glob("v[0-9]*_*.py"))
    return [name for name in available if name not in done]


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise sqlite failures as PersistenceError."""
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceError(f"{action} failed: {e}") from e
