"""
repository.py — CRUD and query operations over the garden atlas store.

Every function opens its own connection and closes it before returning; no
state is kept between calls. Referential integrity on creation is the
caller's job (an event may name a plant id that does not exist). The one
rule enforced here is the delete cascade: removing a plant removes its
events and photos in the same transaction.

Missing ids never raise: getters return None, updates return None, and
deletes return False.
"""

import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from database import get_db, transaction
from models import Event, Photo, Plant, Setting

logger = logging.getLogger(__name__)

PLANT_COLUMNS = ('name', 'type', 'row', 'x', 'y', 'emoji', 'bed_id', 'notes')
EVENT_COLUMNS = ('plant_id', 'event_type', 'date', 'notes', 'modified_at')
PHOTO_COLUMNS = ('plant_id', 'data', 'content_type', 'is_main', 'created_at')

TABLE_COLUMNS = {
    'plants': PLANT_COLUMNS,
    'events': EVENT_COLUMNS,
    'photos': PHOTO_COLUMNS,
}

# camelCase keys accepted in update patches
FIELD_ALIASES = {
    'bedId': 'bed_id',
    'plantId': 'plant_id',
    'eventType': 'event_type',
    'modifiedAt': 'modified_at',
}


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _clean_patch(changes: Dict[str, Any], columns: Iterable[str], kind: str) -> Dict[str, Any]:
    """Map a partial patch onto table columns, dropping the id and unknown keys."""
    fields = {}
    unknown = []
    for key, value in changes.items():
        column = FIELD_ALIASES.get(key, key)
        if column == 'id':
            continue
        if column in columns:
            fields[column] = value
        else:
            unknown.append(key)
    if unknown:
        logger.warning("Ignoring unknown %s field(s): %s", kind, ', '.join(sorted(unknown)))
    return fields


def insert_record(conn, table: str, record, keep_id: bool = False) -> int:
    """
    Insert a dataclass record into plants, events, or photos on an open connection.

    With keep_id the record's own id is written (used when restoring an
    export); otherwise SQLite assigns one.
    """
    columns = list(TABLE_COLUMNS[table])
    values = [getattr(record, column) for column in columns]
    if keep_id and record.id is not None:
        columns.insert(0, 'id')
        values.insert(0, record.id)
    names = ', '.join(f'"{column}"' for column in columns)
    placeholders = ', '.join('?' for _ in columns)
    cursor = conn.execute(f"INSERT INTO {table} ({names}) VALUES ({placeholders})", values)
    return cursor.lastrowid


def get_counts() -> Dict[str, int]:
    """Number of records in each collection."""
    conn = get_db()
    try:
        return {
            table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in ('plants', 'events', 'settings', 'photos')
        }
    finally:
        conn.close()


def _update_record(conn, table: str, record_id: int, fields: Dict[str, Any]):
    assignments = ', '.join(f'"{column}" = ?' for column in fields)
    conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ?",
        (*fields.values(), record_id)
    )


# ========================================
# Plants
# ========================================

def get_all_plants() -> List[Plant]:
    """Retrieve all plants in creation order."""
    conn = get_db()
    try:
        rows = conn.execute("SELECT * FROM plants ORDER BY id").fetchall()
        return [Plant.from_row(row) for row in rows]
    finally:
        conn.close()


def get_plant(plant_id: int) -> Optional[Plant]:
    """Retrieve a single plant by ID."""
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM plants WHERE id = ?", (plant_id,)).fetchone()
        return Plant.from_row(row) if row else None
    finally:
        conn.close()


def add_plant(plant: Plant) -> int:
    """Insert a plant and return its store-assigned id."""
    conn = get_db()
    try:
        plant_id = insert_record(conn, 'plants', plant)
        conn.commit()
        return plant_id
    finally:
        conn.close()


def update_plant(plant_id: int, changes: Dict[str, Any]) -> Optional[Plant]:
    """
    Merge a partial patch into an existing plant.

    Returns:
        The updated plant, or None if no plant has that id.
    """
    fields = _clean_patch(changes, PLANT_COLUMNS, 'plant')
    with transaction() as conn:
        if conn.execute("SELECT 1 FROM plants WHERE id = ?", (plant_id,)).fetchone() is None:
            return None
        if fields:
            _update_record(conn, 'plants', plant_id, fields)
        row = conn.execute("SELECT * FROM plants WHERE id = ?", (plant_id,)).fetchone()
        return Plant.from_row(row)


def delete_plant(plant_id: int) -> bool:
    """Delete a plant together with all of its events and photos."""
    with transaction() as conn:
        events = conn.execute("DELETE FROM events WHERE plant_id = ?", (plant_id,)).rowcount
        photos = conn.execute("DELETE FROM photos WHERE plant_id = ?", (plant_id,)).rowcount
        deleted = conn.execute("DELETE FROM plants WHERE id = ?", (plant_id,)).rowcount

    if deleted:
        logger.info("Deleted plant %s with %d event(s) and %d photo(s)", plant_id, events, photos)
    return deleted > 0


def get_plants_in_bed(bed_id: int) -> List[Plant]:
    """Retrieve the plants contained in a bed."""
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT * FROM plants WHERE bed_id = ? ORDER BY id", (bed_id,)
        ).fetchall()
        return [Plant.from_row(row) for row in rows]
    finally:
        conn.close()


def add_plant_to_bed(bed_id: int, plant: Plant) -> int:
    """Add a plant inside a bed; bed members carry no row or map position."""
    member = replace(plant, bed_id=bed_id, type='bed-plant', row=None, x=None, y=None)
    return add_plant(member)


# ========================================
# Events
# ========================================

def get_all_events() -> List[Event]:
    conn = get_db()
    try:
        rows = conn.execute("SELECT * FROM events ORDER BY id").fetchall()
        return [Event.from_row(row) for row in rows]
    finally:
        conn.close()


def get_event(event_id: int) -> Optional[Event]:
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        return Event.from_row(row) if row else None
    finally:
        conn.close()


def add_event(event: Event) -> int:
    """Insert an event, stamping modified_at with the current time."""
    conn = get_db()
    try:
        event_id = insert_record(conn, 'events', replace(event, modified_at=utc_now_iso()))
        conn.commit()
        return event_id
    finally:
        conn.close()


def add_events_for_plants(plant_ids: Iterable[int], event: Event) -> List[int]:
    """
    Log the same event against several plants at once.

    All rows are written in one transaction; the event's own plant_id is
    replaced by each id in turn.
    """
    stamped = replace(event, modified_at=utc_now_iso())
    with transaction() as conn:
        return [
            insert_record(conn, 'events', replace(stamped, plant_id=plant_id))
            for plant_id in plant_ids
        ]


def update_event(event_id: int, changes: Dict[str, Any]) -> Optional[Event]:
    """
    Merge a partial patch into an existing event and refresh modified_at.

    Returns:
        The updated event, or None if no event has that id.
    """
    fields = _clean_patch(changes, EVENT_COLUMNS, 'event')
    fields['modified_at'] = utc_now_iso()
    with transaction() as conn:
        if conn.execute("SELECT 1 FROM events WHERE id = ?", (event_id,)).fetchone() is None:
            return None
        _update_record(conn, 'events', event_id, fields)
        row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        return Event.from_row(row)


def delete_event(event_id: int) -> bool:
    conn = get_db()
    try:
        deleted = conn.execute("DELETE FROM events WHERE id = ?", (event_id,)).rowcount
        conn.commit()
        return deleted > 0
    finally:
        conn.close()


def get_events_for_plant(plant_id: int) -> List[Event]:
    """Retrieve a plant's events, most recent date first."""
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT * FROM events WHERE plant_id = ? ORDER BY date DESC, id DESC",
            (plant_id,)
        ).fetchall()
        return [Event.from_row(row) for row in rows]
    finally:
        conn.close()


def get_last_event_of_type(plant_id: int, event_type: str) -> Optional[Event]:
    """Most recent event of one type for a plant (served by the composite index)."""
    conn = get_db()
    try:
        row = conn.execute(
            """SELECT * FROM events
               WHERE plant_id = ? AND event_type = ?
               ORDER BY date DESC, id DESC
               LIMIT 1""",
            (plant_id, event_type)
        ).fetchone()
        return Event.from_row(row) if row else None
    finally:
        conn.close()


# ========================================
# Settings
# ========================================

def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value by key, or default when it was never stored."""
    conn = get_db()
    try:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    if row is None:
        return default
    return json.loads(row['value'])


def set_setting(key: str, value: Any):
    """Insert or replace a setting."""
    conn = get_db()
    try:
        conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, json.dumps(value))
        )
        conn.commit()
    finally:
        conn.close()


def delete_setting(key: str) -> bool:
    conn = get_db()
    try:
        deleted = conn.execute("DELETE FROM settings WHERE key = ?", (key,)).rowcount
        conn.commit()
        return deleted > 0
    finally:
        conn.close()


def get_all_settings() -> List[Setting]:
    conn = get_db()
    try:
        rows = conn.execute("SELECT key, value FROM settings ORDER BY key").fetchall()
        return [Setting(key=row['key'], value=json.loads(row['value'])) for row in rows]
    finally:
        conn.close()


# ========================================
# Photos (read side; writes live in photos.py)
# ========================================

def get_photo(photo_id: int) -> Optional[Photo]:
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM photos WHERE id = ?", (photo_id,)).fetchone()
        return Photo.from_row(row) if row else None
    finally:
        conn.close()


def get_photos_for_plant(plant_id: int) -> List[Photo]:
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT * FROM photos WHERE plant_id = ? ORDER BY id", (plant_id,)
        ).fetchall()
        return [Photo.from_row(row) for row in rows]
    finally:
        conn.close()


def get_all_photos() -> List[Photo]:
    conn = get_db()
    try:
        rows = conn.execute("SELECT * FROM photos ORDER BY id").fetchall()
        return [Photo.from_row(row) for row in rows]
    finally:
        conn.close()
