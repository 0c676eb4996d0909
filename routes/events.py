"""
routes/events.py — Care event JSON API routes.

Provides:
- POST /events/add          — Log an event against one plant
- POST /events/bulk         — Log the same event against several plants
- GET /events/<id>          — Get an event
- POST /events/<id>/edit    — Partial update (modifiedAt is refreshed)
- POST /events/<id>/delete  — Delete an event
"""

from flask import Blueprint, abort, jsonify, request

from errors import ValidationError
from models import Event
from repository import (
    add_event, add_events_for_plants, delete_event, get_event, update_event
)
from utils.validators import validate_event_payload

events_bp = Blueprint('events', __name__, url_prefix='/events')


@events_bp.route('/add', methods=['POST'])
def create_event():
    fields = validate_event_payload(request.get_json(silent=True))
    event_id = add_event(Event(**fields))
    return jsonify({'success': True, 'event': get_event(event_id).to_dict()}), 201


@events_bp.route('/bulk', methods=['POST'])
def create_events_bulk():
    """Log one event for every id in plantIds."""
    payload = request.get_json(silent=True)
    fields = validate_event_payload(payload, require_plant=False)

    plant_ids = payload.get('plantIds')
    if (not isinstance(plant_ids, list) or not plant_ids
            or not all(isinstance(i, int) and not isinstance(i, bool) for i in plant_ids)):
        raise ValidationError("plantIds must be a non-empty list of plant ids")

    event_ids = add_events_for_plants(plant_ids, Event(**fields))
    return jsonify({'success': True, 'eventIds': event_ids}), 201


@events_bp.route('/<int:event_id>')
def event_detail(event_id):
    event = get_event(event_id)
    if event is None:
        abort(404, description=f"Event {event_id} not found")
    return jsonify({'success': True, 'event': event.to_dict()})


@events_bp.route('/<int:event_id>/edit', methods=['POST'])
def edit_event(event_id):
    fields = validate_event_payload(request.get_json(silent=True), partial=True)
    event = update_event(event_id, fields)
    if event is None:
        abort(404, description=f"Event {event_id} not found")
    return jsonify({'success': True, 'event': event.to_dict()})


@events_bp.route('/<int:event_id>/delete', methods=['POST'])
def remove_event(event_id):
    if not delete_event(event_id):
        abort(404, description=f"Event {event_id} not found")
    return jsonify({'success': True})
