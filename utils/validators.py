"""
utils/validators.py — Input validation helpers for the JSON API.

Validates:
- Plant payloads (non-empty name, known type, numeric position, bed reference)
- Event payloads (owning plant id, known event type, ISO calendar date)
- Spray interval tables (known plant types, non-negative whole days)

Each validator accepts camelCase or snake_case keys, returns a dict keyed by
model attribute names, and raises ValidationError with a readable message.
"""

from datetime import date

from errors import ValidationError
from models import EVENT_TYPES, PLANT_TYPES


def _get(data, name, alias=None):
    if name in data:
        return True, data[name]
    if alias and alias in data:
        return True, data[alias]
    return False, None


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_int(value, label):
    if value is None or value == '':
        return None
    if _is_int(value):
        return value
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    raise ValidationError(f"{label} must be a whole number")


def _optional_number(value, label):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")


def _optional_text(value, label):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text")
    return value.strip() or None


def validate_iso_date(value, label='date'):
    """Check a YYYY-MM-DD calendar date and return it normalized."""
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a YYYY-MM-DD date")
    try:
        return date.fromisoformat(value.strip()[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"{label} must be a YYYY-MM-DD date")


def validate_plant_payload(data, partial=False):
    """
    Validate a plant create/update payload.

    With partial=True only the keys present are checked and returned.
    """
    if not isinstance(data, dict):
        raise ValidationError("Plant payload must be an object")

    cleaned = {}

    present, name = _get(data, 'name')
    if present or not partial:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Plant name is required")
        cleaned['name'] = name.strip()

    present, plant_type = _get(data, 'type')
    if present or not partial:
        if plant_type not in PLANT_TYPES:
            raise ValidationError(f"Plant type must be one of: {', '.join(PLANT_TYPES)}")
        cleaned['type'] = plant_type

    present, row = _get(data, 'row')
    if present:
        cleaned['row'] = _optional_int(row, 'row')

    for axis in ('x', 'y'):
        present, value = _get(data, axis)
        if present:
            cleaned[axis] = _optional_number(value, axis)

    present, bed_id = _get(data, 'bed_id', 'bedId')
    if present:
        cleaned['bed_id'] = _optional_int(bed_id, 'bedId')

    for field in ('emoji', 'notes'):
        present, value = _get(data, field)
        if present:
            cleaned[field] = _optional_text(value, field)

    return cleaned


def validate_event_payload(data, partial=False, require_plant=True):
    """
    Validate an event create/update payload.

    require_plant=False skips the owning plant id (multi-plant logging
    supplies the ids separately).
    """
    if not isinstance(data, dict):
        raise ValidationError("Event payload must be an object")

    cleaned = {}

    present, plant_id = _get(data, 'plant_id', 'plantId')
    if present or (require_plant and not partial):
        plant_id = _optional_int(plant_id, 'plantId')
        if plant_id is None:
            raise ValidationError("plantId is required")
        cleaned['plant_id'] = plant_id

    present, event_type = _get(data, 'event_type', 'eventType')
    if present or not partial:
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Event type must be one of: {', '.join(EVENT_TYPES)}")
        cleaned['event_type'] = event_type

    present, event_date = _get(data, 'date')
    if present or not partial:
        cleaned['date'] = validate_iso_date(event_date)

    present, notes = _get(data, 'notes')
    if present:
        cleaned['notes'] = _optional_text(notes, 'notes')

    return cleaned


def validate_spray_intervals(data):
    """Validate a plant type → interval days table (None disables spraying)."""
    if not isinstance(data, dict):
        raise ValidationError("Spray intervals must be an object")

    cleaned = {}
    for plant_type, days in data.items():
        if plant_type not in PLANT_TYPES:
            raise ValidationError(f"Unknown plant type: {plant_type}")
        if isinstance(days, dict):
            days = days.get('spray')
        days = _optional_int(days, f"Interval for {plant_type}")
        if days is not None and days < 0:
            raise ValidationError(f"Interval for {plant_type} cannot be negative")
        cleaned[plant_type] = days
    return cleaned
