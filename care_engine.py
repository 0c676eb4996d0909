"""
care_engine.py — Derived care state computed from a plant's event history.

This module implements:
- Spray forecast: next spray date and urgency from the plant type's interval
  and the most recent spray event
- Care status: how recently the plant received any non-spray care
- Plant search: the filter behind the map's search box

Everything here recomputes from fresh repository reads; nothing is cached.
Dates are calendar dates, so day differences are exact integers.

Thresholds:
- Forecast: days_until < 0 → overdue, 0..3 → soon, otherwise ok
- Care: ≤ 7 days → healthy, 8..14 → attention, > 14 or no care → neglected
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from models import DEFAULT_SPRAY_INTERVALS, SPRAY_INTERVALS_KEY, Plant
from repository import (
    get_events_for_plant, get_last_event_of_type, get_plant, get_setting
)

SOON_THRESHOLD_DAYS = 3
HEALTHY_MAX_DAYS = 7
ATTENTION_MAX_DAYS = 14

STATUS_OVERDUE = 'overdue'
STATUS_SOON = 'soon'
STATUS_OK = 'ok'
STATUS_NEVER = 'never'

CARE_HEALTHY = 'healthy'
CARE_ATTENTION = 'attention'
CARE_NEGLECTED = 'neglected'


@dataclass
class Forecast:
    """Spray forecast for one plant."""
    status: str
    date: Optional[str] = None
    days_until: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status, 'date': self.date, 'daysUntil': self.days_until}


def parse_event_date(value: str) -> date:
    """Parse an event date; a trailing time-of-day part is ignored."""
    return date.fromisoformat(value[:10])


def resolve_spray_interval(plant_type: str, intervals: Optional[Dict[str, Any]] = None) -> Optional[int]:
    """
    Look up the spray interval in days for a plant type.

    Stored intervals override the defaults type by type. Entries may be plain
    numbers or {"spray": n} objects as written by older exports. Zero or a
    missing entry means the type has no spray schedule.
    """
    merged = dict(DEFAULT_SPRAY_INTERVALS)
    if isinstance(intervals, dict):
        merged.update(intervals)

    entry = merged.get(plant_type)
    if isinstance(entry, dict):
        entry = entry.get('spray')
    if not entry:
        return None
    return int(entry)


def forecast_from_last_spray(last_spray: Optional[date], interval_days: int,
                             today: Optional[date] = None) -> Forecast:
    """Compute the forecast once the interval and last spray date are known."""
    if last_spray is None:
        return Forecast(status=STATUS_NEVER)

    today = today or date.today()
    next_date = last_spray + timedelta(days=interval_days)
    days_until = (next_date - today).days

    if days_until < 0:
        status = STATUS_OVERDUE
    elif days_until <= SOON_THRESHOLD_DAYS:
        status = STATUS_SOON
    else:
        status = STATUS_OK

    return Forecast(status=status, date=next_date.isoformat(), days_until=days_until)


def calculate_next_spray(plant_id: int, today: Optional[date] = None) -> Optional[Forecast]:
    """
    Compute the spray forecast for a plant.

    Returns:
        None when the plant does not exist or its type has no spray interval;
        otherwise a Forecast (status 'never' when it was never sprayed).
    """
    plant = get_plant(plant_id)
    if plant is None:
        return None

    intervals = get_setting(SPRAY_INTERVALS_KEY, DEFAULT_SPRAY_INTERVALS)
    interval = resolve_spray_interval(plant.type, intervals)
    if interval is None:
        return None

    last_spray = get_last_event_of_type(plant_id, 'spray')
    last_date = parse_event_date(last_spray.date) if last_spray else None
    return forecast_from_last_spray(last_date, interval, today)


def care_status_from_events(events, today: Optional[date] = None) -> str:
    """Classify care recency from events ordered most recent first."""
    care_events = [e for e in events if e.event_type != 'spray']
    if not care_events:
        return CARE_NEGLECTED

    today = today or date.today()
    days_since = (today - parse_event_date(care_events[0].date)).days

    if days_since <= HEALTHY_MAX_DAYS:
        return CARE_HEALTHY
    if days_since <= ATTENTION_MAX_DAYS:
        return CARE_ATTENTION
    return CARE_NEGLECTED


def get_plant_care_status(plant_id: int, today: Optional[date] = None) -> str:
    """Care status of a plant; spraying does not count as care."""
    return care_status_from_events(get_events_for_plant(plant_id), today)


def plant_overview(plant: Plant, today: Optional[date] = None) -> Dict[str, Any]:
    """Plant record plus its forecast and care status, as served to the UI."""
    forecast = calculate_next_spray(plant.id, today)
    overview = plant.to_dict()
    overview['forecast'] = forecast.to_dict() if forecast else None
    overview['careStatus'] = get_plant_care_status(plant.id, today)
    return overview


def search_plants(plants: Iterable[Plant], query: str) -> List[Plant]:
    """
    Filter plants by a free-text query.

    A plant matches when the query equals its id, or is contained in its name
    or type (case-insensitive). A blank query matches nothing.
    """
    q = (query or '').strip().lower()
    if not q:
        return []
    return [
        p for p in plants
        if str(p.id) == q or q in (p.name or '').lower() or q in (p.type or '').lower()
    ]
