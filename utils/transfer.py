"""
utils/transfer.py — Whole-store JSON export and import.

Document format:
    {
      "plants":   [{id, name, type, row, x, y, emoji, bedId, notes}, ...],
      "events":   [{id, plantId, eventType, date, notes, modifiedAt}, ...],
      "settings": [{key, value}, ...],
      "photos":   [{id, plantId, isMain, createdAt, data: "data:<mime>;base64,..."}, ...],
      "exportedAt": "<ISO-8601>"
    }

Import replaces everything. The document is parsed and validated up front,
then all four tables are cleared and refilled inside one transaction: either
the whole store is replaced or nothing changes.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Tuple

from database import transaction
from errors import ImportFormatError, ValidationError
from models import Event, Photo, Plant, Setting
from repository import (
    get_all_events, get_all_photos, get_all_plants, get_all_settings,
    insert_record, utc_now_iso
)
from utils.validators import validate_iso_date

logger = logging.getLogger(__name__)

COLLECTIONS = ('plants', 'events', 'settings', 'photos')


def photo_to_data_url(data: bytes, content_type: str = 'image/jpeg') -> str:
    """Encode binary photo data as a self-describing data URL."""
    encoded = base64.b64encode(data).decode('ascii')
    return f"data:{content_type};base64,{encoded}"


def data_url_to_bytes(url: str) -> Tuple[bytes, str]:
    """
    Decode a base64 data URL.

    Returns:
        (payload bytes, content type)
    """
    if not isinstance(url, str) or not url.startswith('data:') or ';base64,' not in url:
        raise ImportFormatError("Photo data must be a base64 data URL")

    header, payload = url.split(';base64,', 1)
    content_type = header[len('data:'):] or 'application/octet-stream'
    try:
        return base64.b64decode(payload, validate=True), content_type
    except (binascii.Error, ValueError) as e:
        raise ImportFormatError("Photo data is not valid base64") from e


def export_data() -> Dict[str, Any]:
    """Collect the entire store into a JSON-serializable document."""
    photos = []
    for photo in get_all_photos():
        record = photo.to_dict()
        del record['size']
        record['data'] = photo_to_data_url(photo.data, photo.content_type)
        photos.append(record)

    return {
        'plants': [plant.to_dict() for plant in get_all_plants()],
        'events': [event.to_dict() for event in get_all_events()],
        'settings': [setting.to_dict() for setting in get_all_settings()],
        'photos': photos,
        'exportedAt': utc_now_iso(),
    }


def _records(document: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    items = document.get(name) or []
    if not isinstance(items, list):
        raise ImportFormatError(f"'{name}' must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise ImportFormatError(f"Every entry in '{name}' must be an object")
    return items


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _check_id(item: Dict[str, Any], kind: str):
    record_id = item.get('id')
    if record_id is not None and not _is_int(record_id):
        raise ImportFormatError(f"{kind} id must be a whole number")


def _owner_id(item: Dict[str, Any], kind: str) -> int:
    plant_id = item.get('plantId', item.get('plant_id'))
    if not _is_int(plant_id):
        raise ImportFormatError(f"{kind} entry without plantId")
    return plant_id


def _required_text(item: Dict[str, Any], kind: str, name: str) -> str:
    value = item.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ImportFormatError(f"{kind} entry without {name}")
    return value


def _parse_plant(item: Dict[str, Any]) -> Plant:
    _check_id(item, 'Plant')
    _required_text(item, 'Plant', 'name')
    _required_text(item, 'Plant', 'type')
    return Plant.from_dict(item)


def _parse_event(item: Dict[str, Any]) -> Event:
    """Events must carry an owner, a type and a YYYY-MM-DD date the forecasts can read."""
    _check_id(item, 'Event')
    event = Event.from_dict(item)
    if not _is_int(event.plant_id) or not ('plantId' in item or 'plant_id' in item):
        raise ImportFormatError("Event entry without plantId")
    if not isinstance(event.event_type, str) or not event.event_type.strip():
        raise ImportFormatError("Event entry without eventType")
    try:
        validate_iso_date(event.date, 'Event date')
    except ValidationError as e:
        raise ImportFormatError(str(e)) from e
    return event


def _parse_setting(item: Dict[str, Any]) -> Setting:
    key = item.get('key')
    if not isinstance(key, str) or not key:
        raise ImportFormatError("Setting entry without key")
    return Setting(key=key, value=item.get('value'))


def _parse_photo(item: Dict[str, Any]) -> Photo:
    _check_id(item, 'Photo')
    plant_id = _owner_id(item, 'Photo')
    if 'data' not in item:
        raise ImportFormatError("Photo entry without data")
    data, content_type = data_url_to_bytes(item['data'])
    return Photo(
        id=item.get('id'),
        plant_id=plant_id,
        data=data,
        content_type=content_type,
        is_main=bool(item.get('isMain', item.get('is_main', False))),
        created_at=item.get('createdAt', item.get('created_at')),
    )


def parse_document(document: Any) -> Dict[str, list]:
    """
    Validate an import document and turn it into model records.

    Every record is checked here, before any write, so a malformed entry
    raises ImportFormatError instead of failing inside the transaction or
    landing in the store where the forecasts would trip over it.
    """
    if not isinstance(document, dict):
        raise ImportFormatError("Import document must be a JSON object")

    return {
        'plants': [_parse_plant(item) for item in _records(document, 'plants')],
        'events': [_parse_event(item) for item in _records(document, 'events')],
        'settings': [_parse_setting(item) for item in _records(document, 'settings')],
        'photos': [_parse_photo(item) for item in _records(document, 'photos')],
    }


def _normalize_main_flags(conn):
    """Leave exactly one main photo per plant: the lowest flagged id, else the oldest."""
    conn.execute("""
        UPDATE photos SET is_main = 0
        WHERE is_main = 1 AND id NOT IN (
            SELECT MIN(id) FROM photos WHERE is_main = 1 GROUP BY plant_id
        )
    """)
    conn.execute("""
        UPDATE photos SET is_main = 1
        WHERE id IN (
            SELECT MIN(id) FROM photos GROUP BY plant_id HAVING MAX(is_main) = 0
        )
    """)


def import_data(document: Any) -> Dict[str, int]:
    """
    Replace the whole store with the contents of an export document.

    Returns:
        Count of imported records per collection.

    Raises:
        ImportFormatError: the document is malformed (nothing was touched).
        sqlite3.Error: the write failed and was rolled back.
    """
    return import_records(parse_document(document))


def import_records(records: Dict[str, list]) -> Dict[str, int]:
    """Replace the whole store with records already checked by parse_document."""
    with transaction() as conn:
        for table in COLLECTIONS:
            conn.execute(f"DELETE FROM {table}")

        for plant in records['plants']:
            insert_record(conn, 'plants', plant, keep_id=True)
        for event in records['events']:
            insert_record(conn, 'events', event, keep_id=True)
        for setting in records['settings']:
            conn.execute(
                "INSERT INTO settings (key, value) VALUES (?, ?)",
                (setting.key, json.dumps(setting.value))
            )
        for photo in records['photos']:
            insert_record(conn, 'photos', photo, keep_id=True)

        _normalize_main_flags(conn)

    stats = {name: len(records[name]) for name in COLLECTIONS}
    logger.info(
        "Imported %d plants, %d events, %d settings, %d photos",
        stats['plants'], stats['events'], stats['settings'], stats['photos']
    )
    return stats
