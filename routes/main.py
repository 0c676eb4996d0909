"""
routes/main.py — Overview and spray-due routes.

Provides:
- GET /     — Schema version, record counts, every plant with its forecast and
              care status, last backup, and a CSRF token for later POSTs
- GET /due  — Plants whose spray is overdue, due soon, or never recorded

Both accept ?today=YYYY-MM-DD to evaluate forecasts for another day.
"""

from datetime import date

from flask import Blueprint, jsonify, request
from flask_wtf.csrf import generate_csrf

from care_engine import STATUS_NEVER, STATUS_OVERDUE, STATUS_SOON, plant_overview
from database import get_schema_version
from repository import get_all_plants, get_counts
from utils.backup import list_backups
from utils.validators import validate_iso_date

main_bp = Blueprint('main', __name__)

DUE_STATUSES = (STATUS_OVERDUE, STATUS_SOON, STATUS_NEVER)


def request_today():
    """The ?today= query argument as a date, defaulting to the real today."""
    value = request.args.get('today')
    if not value:
        return date.today()
    return date.fromisoformat(validate_iso_date(value, 'today'))


@main_bp.route('/')
def index():
    """Overview of the whole garden."""
    today = request_today()
    backups = list_backups()

    return jsonify({
        'success': True,
        'schemaVersion': get_schema_version(),
        'counts': get_counts(),
        'plants': [plant_overview(p, today) for p in get_all_plants()],
        'lastBackup': backups[0] if backups else None,
        'csrfToken': generate_csrf(),
    })


@main_bp.route('/due')
def due():
    """Plants needing a spray, most urgent first; never-sprayed plants last."""
    today = request_today()
    overviews = [plant_overview(p, today) for p in get_all_plants()]
    due_plants = [
        o for o in overviews
        if o['forecast'] and o['forecast']['status'] in DUE_STATUSES
    ]
    due_plants.sort(key=lambda o: (
        o['forecast']['daysUntil'] is None,
        o['forecast']['daysUntil'] or 0,
    ))
    return jsonify({'success': True, 'today': today.isoformat(), 'plants': due_plants})
