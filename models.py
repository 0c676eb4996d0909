"""
models.py — Python dataclasses for the garden atlas.

Maps to the SQLite tables created by database.py. Attributes are snake_case;
to_dict()/from_dict() speak the camelCase keys of the portable export
document and the JSON API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


PLANT_TYPES = ['grape', 'fruit', 'bed', 'other', 'bed-plant']

EVENT_TYPES = [
    'planted', 'flowering', 'spray', 'pruned', 'harvested',
    'sickness', 'crop', 'watered', 'other',
]

# Days between sprays per plant type; None means no spray schedule.
DEFAULT_SPRAY_INTERVALS = {
    'grape': 14,
    'fruit': 21,
    'bed': None,
    'other': None,
}

SPRAY_INTERVALS_KEY = 'sprayIntervals'


def _pick(data: Dict[str, Any], name: str, alias: Optional[str] = None, default=None):
    """Read a field by its snake_case name or its camelCase alias."""
    if name in data:
        return data[name]
    if alias and alias in data:
        return data[alias]
    return default


@dataclass
class Plant:
    """A garden entity placed on the map or contained in a bed."""
    id: Optional[int] = None
    name: str = ""
    type: str = "other"
    row: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    emoji: Optional[str] = None
    bed_id: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> 'Plant':
        return cls(
            id=row['id'],
            name=row['name'],
            type=row['type'],
            row=row['row'],
            x=row['x'],
            y=row['y'],
            emoji=row['emoji'],
            bed_id=row['bed_id'],
            notes=row['notes'],
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Plant':
        return cls(
            id=data.get('id'),
            name=data.get('name', ''),
            type=data.get('type', 'other'),
            row=data.get('row'),
            x=data.get('x'),
            y=data.get('y'),
            emoji=data.get('emoji'),
            bed_id=_pick(data, 'bed_id', 'bedId'),
            notes=data.get('notes'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'row': self.row,
            'x': self.x,
            'y': self.y,
            'emoji': self.emoji,
            'bedId': self.bed_id,
            'notes': self.notes,
        }


@dataclass
class Event:
    """A dated care action logged against one plant."""
    id: Optional[int] = None
    plant_id: int = 0
    event_type: str = ""
    date: str = ""
    notes: Optional[str] = None
    modified_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> 'Event':
        return cls(
            id=row['id'],
            plant_id=row['plant_id'],
            event_type=row['event_type'],
            date=row['date'],
            notes=row['notes'],
            modified_at=row['modified_at'],
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        return cls(
            id=data.get('id'),
            plant_id=_pick(data, 'plant_id', 'plantId', 0),
            event_type=_pick(data, 'event_type', 'eventType', ''),
            date=data.get('date', ''),
            notes=data.get('notes'),
            modified_at=_pick(data, 'modified_at', 'modifiedAt'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'plantId': self.plant_id,
            'eventType': self.event_type,
            'date': self.date,
            'notes': self.notes,
            'modifiedAt': self.modified_at,
        }


@dataclass
class Setting:
    """Key-value setting; value is any JSON-serializable structure."""
    key: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key, 'value': self.value}


@dataclass
class Photo:
    """Compressed image attached to a plant."""
    id: Optional[int] = None
    plant_id: int = 0
    data: bytes = b""
    content_type: str = "image/jpeg"
    is_main: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> 'Photo':
        return cls(
            id=row['id'],
            plant_id=row['plant_id'],
            data=bytes(row['data']),
            content_type=row['content_type'] or 'image/jpeg',
            is_main=bool(row['is_main']),
            created_at=row['created_at'],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Metadata only; the binary payload is left to the caller."""
        return {
            'id': self.id,
            'plantId': self.plant_id,
            'contentType': self.content_type,
            'isMain': self.is_main,
            'createdAt': self.created_at,
            'size': len(self.data),
        }
