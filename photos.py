"""
photos.py — Per-plant photo storage with the main-photo invariant.

Rules:
- At most MAX_PHOTOS_PER_PLANT photos per plant.
- Whenever a plant has photos, exactly one of them is flagged main. The
  first photo added becomes main; deleting the main photo promotes the
  oldest remaining one.

Each write runs in a single transaction, so no reader ever sees a plant
with zero or two main photos.
"""

import logging
from typing import List, Optional

from database import transaction
from errors import PhotoLimitError
from models import Photo
from repository import get_photos_for_plant, insert_record, utc_now_iso
from utils.images import OUTPUT_CONTENT_TYPE, compress_image

logger = logging.getLogger(__name__)

MAX_PHOTOS_PER_PLANT = 3


def _count_photos(conn, plant_id):
    return conn.execute(
        "SELECT COUNT(*) FROM photos WHERE plant_id = ?", (plant_id,)
    ).fetchone()[0]


def add_photo_to_plant(plant_id: int, source) -> int:
    """
    Compress an image and attach it to a plant.

    The limit is checked before compressing and again inside the write
    transaction. Compression happens before anything is written, so a bad
    image leaves storage untouched.

    Returns:
        The new photo id.

    Raises:
        PhotoLimitError: the plant already has MAX_PHOTOS_PER_PLANT photos.
        ImageCodecError: the image could not be decoded or encoded.
    """
    if len(get_photos_for_plant(plant_id)) >= MAX_PHOTOS_PER_PLANT:
        logger.info("Rejected photo for plant %s: limit of %d reached", plant_id, MAX_PHOTOS_PER_PLANT)
        raise PhotoLimitError(plant_id, MAX_PHOTOS_PER_PLANT)

    data = compress_image(source)

    with transaction() as conn:
        existing = _count_photos(conn, plant_id)
        if existing >= MAX_PHOTOS_PER_PLANT:
            raise PhotoLimitError(plant_id, MAX_PHOTOS_PER_PLANT)
        photo = Photo(
            plant_id=plant_id,
            data=data,
            content_type=OUTPUT_CONTENT_TYPE,
            is_main=existing == 0,
            created_at=utc_now_iso(),
        )
        return insert_record(conn, 'photos', photo)


def get_main_photo_for_plant(plant_id: int) -> Optional[Photo]:
    """The plant's main photo, falling back to its first photo."""
    photos = get_photos_for_plant(plant_id)
    for photo in photos:
        if photo.is_main:
            return photo
    return photos[0] if photos else None


def set_main_photo(photo_id: int) -> bool:
    """Flag one photo as main and clear the flag on its siblings."""
    with transaction() as conn:
        row = conn.execute("SELECT plant_id FROM photos WHERE id = ?", (photo_id,)).fetchone()
        if row is None:
            return False
        conn.execute("UPDATE photos SET is_main = 0 WHERE plant_id = ?", (row['plant_id'],))
        conn.execute("UPDATE photos SET is_main = 1 WHERE id = ?", (photo_id,))
    return True


def delete_photo(photo_id: int) -> bool:
    """Delete a photo; if it was main, the oldest remaining photo becomes main."""
    with transaction() as conn:
        row = conn.execute(
            "SELECT plant_id, is_main FROM photos WHERE id = ?", (photo_id,)
        ).fetchone()
        if row is None:
            return False

        conn.execute("DELETE FROM photos WHERE id = ?", (photo_id,))
        if row['is_main']:
            successor = conn.execute(
                "SELECT id FROM photos WHERE plant_id = ? ORDER BY id LIMIT 1",
                (row['plant_id'],)
            ).fetchone()
            if successor:
                conn.execute("UPDATE photos SET is_main = 1 WHERE id = ?", (successor['id'],))
    return True


def delete_photos_for_plant(plant_id: int) -> int:
    """Delete every photo of a plant. Returns the number removed."""
    with transaction() as conn:
        return conn.execute("DELETE FROM photos WHERE plant_id = ?", (plant_id,)).rowcount


def list_photo_metadata(plant_id: int) -> List[dict]:
    return [photo.to_dict() for photo in get_photos_for_plant(plant_id)]
