"""
routes/settings.py — Settings and administration routes.

Provides:
- GET /settings/                 — Stored settings, effective spray intervals, backups
- POST /settings/intervals       — Save spray intervals (merged into the stored table)
- POST /settings/backup/create   — Create a manual backup
- POST /settings/backup/restore  — Restore from a backup (current state is backed up first)
- POST /settings/backup/delete   — Delete a backup
"""

from flask import Blueprint, abort, jsonify, request

from care_engine import resolve_spray_interval
from database import init_db
from errors import ValidationError
from models import DEFAULT_SPRAY_INTERVALS, SPRAY_INTERVALS_KEY
from repository import get_all_settings, get_setting, set_setting
from utils.backup import backup_db, delete_backup, list_backups, restore_db
from utils.validators import validate_spray_intervals

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


def _effective_intervals():
    stored = get_setting(SPRAY_INTERVALS_KEY, DEFAULT_SPRAY_INTERVALS)
    types = set(DEFAULT_SPRAY_INTERVALS) | set(stored if isinstance(stored, dict) else {})
    return {t: resolve_spray_interval(t, stored) for t in sorted(types)}


def _backup_filename():
    payload = request.get_json(silent=True) or {}
    filename = payload.get('filename') if isinstance(payload, dict) else None
    if not filename:
        filename = request.form.get('filename', '')
    if not filename:
        raise ValidationError("Backup filename is required")
    return filename


@settings_bp.route('/')
def index():
    """All settings plus backup listing."""
    return jsonify({
        'success': True,
        'settings': {s.key: s.value for s in get_all_settings()},
        'sprayIntervals': _effective_intervals(),
        'defaultSprayIntervals': DEFAULT_SPRAY_INTERVALS,
        'backups': list_backups(),
    })


# ========================================
# Spray intervals
# ========================================

@settings_bp.route('/intervals', methods=['POST'])
def save_intervals():
    """Save spray intervals; types not posted keep their current value."""
    intervals = validate_spray_intervals(request.get_json(silent=True))

    stored = get_setting(SPRAY_INTERVALS_KEY, {})
    merged = dict(stored) if isinstance(stored, dict) else {}
    merged.update(intervals)
    set_setting(SPRAY_INTERVALS_KEY, merged)

    return jsonify({'success': True, 'sprayIntervals': _effective_intervals()})


# ========================================
# Backups
# ========================================

@settings_bp.route('/backup/create', methods=['POST'])
def backup_create():
    filename = backup_db('manual')
    if not filename:
        return jsonify({'success': False, 'error': "Backup failed"}), 500
    return jsonify({'success': True, 'filename': filename}), 201


@settings_bp.route('/backup/restore', methods=['POST'])
def backup_restore():
    """Restore a backup, then upgrade its schema if it predates this version."""
    filename = _backup_filename()
    if filename not in {b['filename'] for b in list_backups()}:
        abort(404, description=f"Backup {filename} not found")

    safety = backup_db('pre_restore')
    if not restore_db(filename):
        return jsonify({'success': False, 'error': "Restore failed"}), 500

    version = init_db()
    return jsonify({'success': True, 'safetyBackup': safety, 'schemaVersion': version})


@settings_bp.route('/backup/delete', methods=['POST'])
def backup_delete():
    filename = _backup_filename()
    if not delete_backup(filename):
        abort(404, description=f"Backup {filename} not found")
    return jsonify({'success': True})
