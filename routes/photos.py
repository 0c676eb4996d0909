"""
routes/photos.py — Plant photo routes.

Provides:
- GET /photos/plant/<plant_id>        — Photo metadata for a plant
- POST /photos/plant/<plant_id>/add   — Upload a photo (multipart field "photo")
- GET /photos/plant/<plant_id>/main   — Main photo image
- GET /photos/<id>                    — Photo image
- POST /photos/<id>/main              — Make a photo the plant's main photo
- POST /photos/<id>/delete            — Delete a photo
"""

import mimetypes
from io import BytesIO

from flask import Blueprint, abort, jsonify, request, send_file

from errors import ValidationError
from photos import (
    add_photo_to_plant, delete_photo, get_main_photo_for_plant,
    list_photo_metadata, set_main_photo
)
from repository import get_photo, get_plant

photos_bp = Blueprint('photos', __name__, url_prefix='/photos')


def _send_photo(photo):
    return send_file(
        BytesIO(photo.data),
        mimetype=photo.content_type,
        download_name=f"photo_{photo.id}{mimetypes.guess_extension(photo.content_type) or ''}",
    )


@photos_bp.route('/plant/<int:plant_id>')
def plant_photos(plant_id):
    if get_plant(plant_id) is None:
        abort(404, description=f"Plant {plant_id} not found")
    return jsonify({'success': True, 'photos': list_photo_metadata(plant_id)})


@photos_bp.route('/plant/<int:plant_id>/add', methods=['POST'])
def upload_photo(plant_id):
    """Compress and attach an uploaded image."""
    if get_plant(plant_id) is None:
        abort(404, description=f"Plant {plant_id} not found")

    upload = request.files.get('photo')
    if upload is None or not upload.filename:
        raise ValidationError("No photo uploaded")

    photo_id = add_photo_to_plant(plant_id, upload.stream)
    return jsonify({'success': True, 'photo': get_photo(photo_id).to_dict()}), 201


@photos_bp.route('/plant/<int:plant_id>/main')
def main_photo(plant_id):
    photo = get_main_photo_for_plant(plant_id)
    if photo is None:
        abort(404, description=f"Plant {plant_id} has no photos")
    return _send_photo(photo)


@photos_bp.route('/<int:photo_id>')
def photo_image(photo_id):
    photo = get_photo(photo_id)
    if photo is None:
        abort(404, description=f"Photo {photo_id} not found")
    return _send_photo(photo)


@photos_bp.route('/<int:photo_id>/main', methods=['POST'])
def make_main(photo_id):
    if not set_main_photo(photo_id):
        abort(404, description=f"Photo {photo_id} not found")
    return jsonify({'success': True})


@photos_bp.route('/<int:photo_id>/delete', methods=['POST'])
def remove_photo(photo_id):
    if not delete_photo(photo_id):
        abort(404, description=f"Photo {photo_id} not found")
    return jsonify({'success': True})
