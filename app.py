"""
app.py — Flask entry point for the garden atlas.

Initializes the Flask app, brings the database schema up to date,
registers all route blueprints, and maps core errors to JSON responses.

Run: python app.py → localhost:5000
"""

import logging
import os

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError, CSRFProtect
from werkzeug.exceptions import HTTPException

from database import init_db
from errors import ImageCodecError, StorageError, ValidationError
from routes.main import main_bp
from routes.plants import plants_bp
from routes.events import events_bp
from routes.photos import photos_bp
from routes.settings import settings_bp
from routes.export import export_bp

logger = logging.getLogger(__name__)


def configure_logging():
    """Configure root logging from GARDEN_ATLAS_LOG_LEVEL (default INFO)."""
    level = os.environ.get('GARDEN_ATLAS_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def register_error_handlers(app):
    """Turn core exceptions into JSON error responses."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return _error(str(e), 400)

    @app.errorhandler(ImageCodecError)
    def handle_codec_error(e):
        return _error(str(e), 422)

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        logger.exception("Storage failure")
        return _error("Storage error", 500)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        return _error(e.description, 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return _error(e.description, e.code)


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.secret_key = os.environ.get('GARDEN_ATLAS_SECRET_KEY', 'garden-atlas-local-app-secret-key')
    app.config['WTF_CSRF_CHECK_DEFAULT'] = True
    app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024

    if test_config:
        app.config.update(test_config)

    configure_logging()
    CSRFProtect(app)

    with app.app_context():
        version = init_db()
    logger.info("Database ready at schema v%d", version)

    app.register_blueprint(main_bp)
    app.register_blueprint(plants_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(photos_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(export_bp)

    register_error_handlers(app)

    return app


if __name__ == '__main__':
    app = create_app()
    # Set FLASK_DEBUG=0 to disable auto-reload and the debugger
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
