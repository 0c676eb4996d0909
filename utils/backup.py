"""
utils/backup.py — Database backup and restore operations.

Snapshots the SQLite file into the backup directory with timestamped
filenames, using SQLite's online backup API so pages still sitting in the
WAL are included.
Backup triggers: before every import, manual from Settings.
Format: garden_atlas_YYYYMMDD_HHMMSS_{reason}.db
"""

import logging
import os
import sqlite3
from datetime import datetime

from database import get_db_path

logger = logging.getLogger(__name__)

BACKUP_PREFIX = 'garden_atlas_'


def get_backup_dir():
    """Backup directory from the environment, default backups/ beside the code."""
    default_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'backups')
    return os.environ.get('GARDEN_ATLAS_BACKUP_DIR', default_dir)


def _copy_database(src_path, dest_path):
    src = sqlite3.connect(src_path)
    dest = sqlite3.connect(dest_path)
    try:
        src.backup(dest)
    finally:
        dest.close()
        src.close()


def _is_backup_name(filename):
    return (
        filename.startswith(BACKUP_PREFIX)
        and filename.endswith('.db')
        and os.path.basename(filename) == filename
    )


def backup_db(reason='manual'):
    """
    Snapshot the current database into the backup directory.

    Args:
        reason: Short tag for the backup trigger (e.g., 'manual', 'pre_import').

    Returns:
        The filename of the created backup, or None if there is no database
        yet or the copy failed.
    """
    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    db_path = get_db_path()
    if not os.path.exists(db_path):
        return None

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    safe_reason = reason.replace(' ', '_').replace('/', '_')[:30]
    filename = f'{BACKUP_PREFIX}{timestamp}_{safe_reason}.db'

    try:
        _copy_database(db_path, os.path.join(backup_dir, filename))
    except sqlite3.Error:
        logger.exception("Backup '%s' failed", reason)
        return None

    logger.info("Created backup %s", filename)
    return filename


def list_backups():
    """
    List all backup files.

    Returns:
        List of dicts with keys: filename, timestamp, size_bytes, reason.
        Sorted newest first.
    """
    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    backups = []
    for f in os.listdir(backup_dir):
        if not _is_backup_name(f):
            continue
        stat = os.stat(os.path.join(backup_dir, f))

        # garden_atlas_YYYYMMDD_HHMMSS_reason.db
        parts = f[len(BACKUP_PREFIX):-len('.db')].split('_')
        timestamp_str = ''
        reason = ''
        if len(parts) >= 2:
            date_part, time_part = parts[0], parts[1]
            timestamp_str = (
                f'{date_part[:4]}-{date_part[4:6]}-{date_part[6:8]} '
                f'{time_part[:2]}:{time_part[2:4]}:{time_part[4:6]}'
            )
            reason = '_'.join(parts[2:])

        backups.append({
            'filename': f,
            'timestamp': timestamp_str,
            'size_bytes': stat.st_size,
            'reason': reason,
        })

    backups.sort(key=lambda b: b['filename'], reverse=True)
    return backups


def restore_db(filename):
    """
    Replace the current database with a backup file.

    DANGEROUS: This overwrites the current database entirely.

    Returns:
        True on success, False if the backup does not exist or the copy failed.
    """
    if not _is_backup_name(filename):
        return False

    backup_path = os.path.join(get_backup_dir(), filename)
    if not os.path.exists(backup_path):
        return False

    try:
        _copy_database(backup_path, get_db_path())
    except sqlite3.Error:
        logger.exception("Restore from %s failed", filename)
        return False

    logger.warning("Database restored from %s", filename)
    return True


def delete_backup(filename):
    """Delete a backup file. Returns True if it was removed."""
    if not _is_backup_name(filename):
        return False

    backup_path = os.path.join(get_backup_dir(), filename)
    if not os.path.exists(backup_path):
        return False

    os.remove(backup_path)
    return True
