"""
database.py — SQLite schema store: connections, transactions, and migrations.

The schema version is kept in PRAGMA user_version. Every migration step only
adds tables, columns, or indexes, so a file written by any earlier version
opens cleanly and older rows read the new columns as NULL.

History:
    v1  plants, events, settings
    v2  plants.emoji
    v3  plants.bed_id (bed membership)
    v4  photos
    v5  composite index events(plant_id, event_type)
"""

import logging
import os
import sqlite3
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'garden_atlas.db')


def get_db_path():
    """Get the database path from the environment or the default location."""
    return os.environ.get('GARDEN_ATLAS_DB_PATH', DEFAULT_DB_PATH)


def get_db():
    """Get a database connection with WAL mode and dict-like rows."""
    db_path = get_db_path()
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction():
    """
    Yield a connection inside a write transaction.

    Commits when the block completes, rolls back and re-raises on any error.
    BEGIN IMMEDIATE takes the write lock up front so reads made inside the
    block cannot go stale before the writes land.
    """
    conn = get_db()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ========================================
# Migration steps
# ========================================

def _columns(conn, table):
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def _create_base_tables(conn):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS plants (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            "row" INTEGER,
            x REAL,
            y REAL,
            notes TEXT
        )
    """)
    for column in ('name', 'type', 'row', 'x', 'y'):
        conn.execute(f'CREATE INDEX IF NOT EXISTS idx_plants_{column} ON plants("{column}")')

    conn.execute("""
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            plant_id INTEGER NOT NULL,
            event_type TEXT NOT NULL,
            date TEXT NOT NULL,
            notes TEXT,
            modified_at TEXT
        )
    """)
    for column in ('plant_id', 'event_type', 'date', 'modified_at'):
        conn.execute(f"CREATE INDEX IF NOT EXISTS idx_events_{column} ON events({column})")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)


def _add_plant_emoji(conn):
    if 'emoji' not in _columns(conn, 'plants'):
        conn.execute("ALTER TABLE plants ADD COLUMN emoji TEXT")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_plants_emoji ON plants(emoji)")


def _add_plant_bed_id(conn):
    if 'bed_id' not in _columns(conn, 'plants'):
        conn.execute("ALTER TABLE plants ADD COLUMN bed_id INTEGER")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_plants_bed_id ON plants(bed_id)")


def _create_photos_table(conn):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            plant_id INTEGER NOT NULL,
            data BLOB NOT NULL,
            content_type TEXT DEFAULT 'image/jpeg',
            is_main INTEGER NOT NULL DEFAULT 0,
            created_at TEXT
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_plant_id ON photos(plant_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_is_main ON photos(is_main)")


def _add_events_plant_type_index(conn):
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_events_plant_event_type
        ON events(plant_id, event_type)
    """)


# Ordered; a version is never renumbered or removed once released.
MIGRATIONS = [
    (1, 'base_tables', _create_base_tables),
    (2, 'plant_emoji', _add_plant_emoji),
    (3, 'plant_bed_membership', _add_plant_bed_id),
    (4, 'photos', _create_photos_table),
    (5, 'events_plant_type_index', _add_events_plant_type_index),
]

SCHEMA_VERSION = MIGRATIONS[-1][0]


def get_schema_version(conn=None):
    """Return the schema version recorded in the database file."""
    if conn is not None:
        return conn.execute("PRAGMA user_version").fetchone()[0]
    conn = get_db()
    try:
        return conn.execute("PRAGMA user_version").fetchone()[0]
    finally:
        conn.close()


def init_db(target_version=None):
    """
    Bring the database up to target_version (default: latest).

    Pending steps are applied in order, each in its own transaction together
    with the user_version bump, so an interrupted upgrade resumes from the
    last completed step. Safe to call on every startup.

    Returns:
        The schema version after the upgrade.
    """
    target = SCHEMA_VERSION if target_version is None else target_version
    conn = get_db()
    try:
        current = get_schema_version(conn)
        if current > SCHEMA_VERSION:
            logger.warning(
                "Database schema v%d is newer than this application (v%d); leaving it untouched",
                current, SCHEMA_VERSION,
            )
            return current

        for version, name, step in MIGRATIONS:
            if version <= current or version > target:
                continue
            logger.info("Applying schema migration v%d (%s)", version, name)
            conn.execute("BEGIN")
            try:
                step(conn)
                conn.execute(f"PRAGMA user_version = {int(version)}")
                conn.commit()
            except Exception:
                conn.rollback()
                logger.exception("Schema migration v%d (%s) failed", version, name)
                raise
            current = version

        return current
    finally:
        conn.close()
