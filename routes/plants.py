"""
routes/plants.py — Plant JSON API routes.

Provides:
- GET /plants/                       — List plants (?q= filters like the search box)
- POST /plants/add                   — Add a plant
- GET /plants/<id>                   — Plant details with events, forecast, care status, photos
- POST /plants/<id>/edit             — Partial update
- POST /plants/<id>/delete           — Delete a plant with its events and photos
- GET /plants/<id>/events            — Events, most recent first
- GET /plants/<id>/forecast          — Spray forecast (null when the type has no schedule)
- GET /plants/<bed_id>/bed-plants     — Plants contained in a bed
- POST /plants/<bed_id>/bed-plants/add — Add a plant inside a bed
"""

from flask import Blueprint, abort, jsonify, request

from care_engine import calculate_next_spray, plant_overview, search_plants
from models import Plant
from photos import list_photo_metadata
from repository import (
    add_plant, add_plant_to_bed, delete_plant, get_all_plants,
    get_events_for_plant, get_plant, get_plants_in_bed, update_plant
)
from routes.main import request_today
from utils.validators import validate_plant_payload

plants_bp = Blueprint('plants', __name__, url_prefix='/plants')


def _plant_or_404(plant_id):
    plant = get_plant(plant_id)
    if plant is None:
        abort(404, description=f"Plant {plant_id} not found")
    return plant


# ========================================
# Plant list and details
# ========================================

@plants_bp.route('/')
def list_plants():
    """Get all plants, or the ones matching ?q=."""
    plants = get_all_plants()
    query = request.args.get('q')
    if query is not None:
        plants = search_plants(plants, query)
    return jsonify({'success': True, 'plants': [p.to_dict() for p in plants]})


@plants_bp.route('/<int:plant_id>')
def plant_detail(plant_id):
    """Get one plant with everything the detail view shows."""
    plant = _plant_or_404(plant_id)
    detail = plant_overview(plant, request_today())
    detail['events'] = [e.to_dict() for e in get_events_for_plant(plant_id)]
    detail['photos'] = list_photo_metadata(plant_id)
    if plant.type == 'bed':
        detail['bedPlants'] = [p.to_dict() for p in get_plants_in_bed(plant_id)]
    return jsonify({'success': True, 'plant': detail})


@plants_bp.route('/<int:plant_id>/events')
def plant_events(plant_id):
    _plant_or_404(plant_id)
    events = get_events_for_plant(plant_id)
    return jsonify({'success': True, 'events': [e.to_dict() for e in events]})


@plants_bp.route('/<int:plant_id>/forecast')
def plant_forecast(plant_id):
    _plant_or_404(plant_id)
    forecast = calculate_next_spray(plant_id, request_today())
    return jsonify({'success': True, 'forecast': forecast.to_dict() if forecast else None})


# ========================================
# Plant CRUD
# ========================================

@plants_bp.route('/add', methods=['POST'])
def create_plant():
    """Add a new plant."""
    fields = validate_plant_payload(request.get_json(silent=True))
    plant_id = add_plant(Plant(**fields))
    return jsonify({'success': True, 'plant': get_plant(plant_id).to_dict()}), 201


@plants_bp.route('/<int:plant_id>/edit', methods=['POST'])
def edit_plant(plant_id):
    """Merge the posted fields into a plant."""
    fields = validate_plant_payload(request.get_json(silent=True), partial=True)
    plant = update_plant(plant_id, fields)
    if plant is None:
        abort(404, description=f"Plant {plant_id} not found")
    return jsonify({'success': True, 'plant': plant.to_dict()})


@plants_bp.route('/<int:plant_id>/delete', methods=['POST'])
def remove_plant(plant_id):
    """Delete a plant and everything attached to it."""
    if not delete_plant(plant_id):
        abort(404, description=f"Plant {plant_id} not found")
    return jsonify({'success': True})


# ========================================
# Bed members
# ========================================

@plants_bp.route('/<int:bed_id>/bed-plants')
def bed_plants(bed_id):
    _plant_or_404(bed_id)
    return jsonify({'success': True, 'plants': [p.to_dict() for p in get_plants_in_bed(bed_id)]})


@plants_bp.route('/<int:bed_id>/bed-plants/add', methods=['POST'])
def add_bed_plant(bed_id):
    """Add a plant inside a bed; its type becomes bed-plant."""
    bed = _plant_or_404(bed_id)
    if bed.type != 'bed':
        abort(400, description=f"Plant {bed_id} is not a bed")

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    fields = validate_plant_payload(dict(payload, type='bed-plant'))
    plant_id = add_plant_to_bed(bed_id, Plant(**fields))
    return jsonify({'success': True, 'plant': get_plant(plant_id).to_dict()}), 201
