"""
errors.py — Exception types raised by the garden atlas core.

Missing records are not errors: lookups return None and deletes return
False. Storage failures are plain sqlite3 errors and reach the caller
unchanged; StorageError is only an alias for catching them by name.
"""

import sqlite3


StorageError = sqlite3.Error


class GardenAtlasError(Exception):
    """Base class for application errors."""


class ValidationError(GardenAtlasError):
    """Input rejected before anything was written."""


class PhotoLimitError(ValidationError):
    """A plant already holds the maximum number of photos."""

    def __init__(self, plant_id, limit):
        self.plant_id = plant_id
        self.limit = limit
        super().__init__(f"Maximum {limit} photos allowed per plant")


class ImportFormatError(ValidationError):
    """An import document does not have the expected shape."""


class ImageCodecError(GardenAtlasError):
    """An image could not be decoded or re-encoded."""
