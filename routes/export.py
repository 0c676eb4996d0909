"""
routes/export.py — Data export, import, and spreadsheet routes.

Provides:
- GET /export/json     — Download the whole store as a JSON document
- POST /export/import  — Replace the store from a JSON document
                         (multipart field "file" or a JSON request body)
- GET /export/excel    — Download the care-log workbook

An automatic backup is taken before every import.
"""

import json
from datetime import date

from flask import Blueprint, Response, jsonify, request, send_file

from errors import ImportFormatError
from utils.backup import backup_db
from utils.export import generate_care_log_excel
from utils.transfer import export_data, import_records, parse_document

export_bp = Blueprint('export', __name__, url_prefix='/export')


def _import_document():
    upload = request.files.get('file')
    if upload is not None:
        try:
            return json.loads(upload.read().decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ImportFormatError("Uploaded file is not valid JSON")

    document = request.get_json(silent=True)
    if document is None:
        raise ImportFormatError("No import document provided")
    return document


@export_bp.route('/json')
def export_json():
    """Download every plant, event, setting, and photo."""
    payload = json.dumps(export_data(), ensure_ascii=False, indent=2)
    filename = f"garden-atlas-backup-{date.today().isoformat()}.json"
    return Response(
        payload,
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )


@export_bp.route('/import', methods=['POST'])
def import_json():
    """Replace all data with the posted document; rejected documents take no backup."""
    records = parse_document(_import_document())
    backup = backup_db('pre_import')
    stats = import_records(records)
    return jsonify({'success': True, 'imported': stats, 'backup': backup})


@export_bp.route('/excel')
def export_excel():
    """Download the care log as an Excel workbook."""
    buffer, filename = generate_care_log_excel()
    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
