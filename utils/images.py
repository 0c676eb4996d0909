"""
utils/images.py — Photo normalization with Pillow.

Every uploaded photo is decoded, oriented from its EXIF tag, scaled down so
the longer side is at most MAX_IMAGE_SIZE pixels, and re-encoded as JPEG.
Decode and encode failures raise ImageCodecError; nothing is returned
half-processed.
"""

import io
import logging

from PIL import Image, ImageOps

from errors import ImageCodecError

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 800  # Max width/height in pixels
IMAGE_QUALITY = 70    # JPEG quality (0-100)
OUTPUT_CONTENT_TYPE = 'image/jpeg'

_DECODE_ERRORS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)


def scaled_size(width, height, max_size=MAX_IMAGE_SIZE):
    """
    Target dimensions keeping the aspect ratio.

    Only the longer side is clamped to max_size; images already within bounds
    keep their size. Halves round up.
    """
    if width > height:
        if width > max_size:
            height = int(height * max_size / width + 0.5)
            width = max_size
    else:
        if height > max_size:
            width = int(width * max_size / height + 0.5)
            height = max_size
    return max(width, 1), max(height, 1)


def _read_source(source):
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, 'read'):
        try:
            return source.read()
        except OSError as e:
            raise ImageCodecError('Failed to read file') from e
    raise TypeError(f"Expected image bytes or a file object, got {type(source).__name__}")


def compress_image(source):
    """
    Resize and re-encode an image.

    Args:
        source: Raw image bytes or a readable binary file object
                (e.g. an uploaded werkzeug FileStorage).

    Returns:
        JPEG bytes.

    Raises:
        ImageCodecError: the input is not a decodable image, or encoding failed.
    """
    raw = _read_source(source)

    try:
        src = Image.open(io.BytesIO(raw))
    except _DECODE_ERRORS as e:
        raise ImageCodecError('Failed to load image') from e

    # exif_transpose, convert and resize each hand back a new image
    stages = [src]
    try:
        try:
            src.load()
        except _DECODE_ERRORS as e:
            raise ImageCodecError('Failed to load image') from e

        try:
            stages.append(ImageOps.exif_transpose(src))
            if stages[-1].mode not in ('RGB', 'L'):
                stages.append(stages[-1].convert('RGB'))

            target = scaled_size(*stages[-1].size)
            if target != stages[-1].size:
                stages.append(stages[-1].resize(target, Image.Resampling.LANCZOS))

            output = io.BytesIO()
            stages[-1].save(output, format='JPEG', quality=IMAGE_QUALITY, optimize=True)
        except (OSError, ValueError) as e:
            raise ImageCodecError('Failed to compress image') from e
    finally:
        for img in stages:
            img.close()

    data = output.getvalue()
    logger.debug("Compressed image %d -> %d bytes (%dx%d)", len(raw), len(data), *target)
    return data
