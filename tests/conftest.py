"""
tests/conftest.py — Shared fixtures: isolated database files, Flask client, test images.
"""

import io

import pytest
from PIL import Image


@pytest.fixture
def db_env(monkeypatch, tmp_path):
    """Point the store at a fresh file without creating any schema."""
    db_path = str(tmp_path / 'garden_atlas.db')
    monkeypatch.setenv('GARDEN_ATLAS_DB_PATH', db_path)
    monkeypatch.setenv('GARDEN_ATLAS_BACKUP_DIR', str(tmp_path / 'backups'))

    from database import get_db_path
    assert get_db_path() == db_path
    return db_path


@pytest.fixture
def temp_db(db_env):
    """A fresh database at the latest schema version."""
    from database import init_db
    init_db()
    return db_env


@pytest.fixture
def app(temp_db):
    from app import create_app
    return create_app({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'SECRET_KEY': 'dev-key-for-testing',
    })


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_image():
    """Factory for encoded in-memory test images."""
    def _make(width=64, height=48, fmt='PNG', mode='RGB', color=(110, 170, 60)):
        if mode == 'RGBA':
            color = color + (128,)
        buffer = io.BytesIO()
        Image.new(mode, (width, height), color).save(buffer, format=fmt)
        return buffer.getvalue()
    return _make
