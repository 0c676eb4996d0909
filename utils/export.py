"""
utils/export.py — Care-log spreadsheet export using openpyxl.

Generates one .xlsx workbook with two styled sheets:
- Plants: name, type, row, position, bed, spray forecast, care status
- Events: date, plant, event type, notes (most recent first)
"""

from datetime import date
from io import BytesIO

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from care_engine import plant_overview
from repository import get_all_events, get_all_plants


# Status colors for forecast/care cells
STATUS_FILLS = {
    'overdue': PatternFill(start_color='D32F2F', end_color='D32F2F', fill_type='solid'),
    'soon': PatternFill(start_color='FFB300', end_color='FFB300', fill_type='solid'),
    'ok': PatternFill(start_color='4CAF50', end_color='4CAF50', fill_type='solid'),
    'never': PatternFill(start_color='7B1FA2', end_color='7B1FA2', fill_type='solid'),
    'healthy': PatternFill(start_color='4CAF50', end_color='4CAF50', fill_type='solid'),
    'attention': PatternFill(start_color='FFB300', end_color='FFB300', fill_type='solid'),
    'neglected': PatternFill(start_color='D32F2F', end_color='D32F2F', fill_type='solid'),
}

HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E7D32', end_color='2E7D32', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='1B5E20'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)

PLANT_COLUMNS = [
    ('ID', 8), ('Name', 22), ('Type', 12), ('Row', 8), ('X', 8), ('Y', 8),
    ('Bed', 8), ('Next spray', 14), ('Spray status', 14), ('Care status', 14), ('Notes', 30),
]
EVENT_COLUMNS = [('Date', 14), ('Plant', 22), ('Event', 14), ('Notes', 40)]


def _write_header(ws, columns):
    for col_idx, (title, width) in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=title)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER
        ws.column_dimensions[cell.column_letter].width = width
    ws.freeze_panes = 'A2'


def _write_row(ws, row_idx, values, status_columns=()):
    for col_idx, value in enumerate(values, 1):
        cell = ws.cell(row=row_idx, column=col_idx, value=value)
        cell.border = CELL_BORDER
        if col_idx in status_columns and value in STATUS_FILLS:
            cell.fill = STATUS_FILLS[value]
            cell.font = Font(color='FFFFFF', bold=True)


def _build_plants_sheet(ws, plants, today):
    _write_header(ws, PLANT_COLUMNS)
    for row_idx, plant in enumerate(plants, 2):
        overview = plant_overview(plant, today)
        forecast = overview['forecast'] or {}
        _write_row(ws, row_idx, [
            plant.id, plant.name, plant.type, plant.row, plant.x, plant.y,
            plant.bed_id, forecast.get('date') or '', forecast.get('status') or '',
            overview['careStatus'], plant.notes or '',
        ], status_columns=(9, 10))


def _build_events_sheet(ws, events, names):
    _write_header(ws, EVENT_COLUMNS)
    ordered = sorted(events, key=lambda e: (e.date, e.id), reverse=True)
    for row_idx, event in enumerate(ordered, 2):
        _write_row(ws, row_idx, [
            event.date, names.get(event.plant_id, f'#{event.plant_id}'),
            event.event_type, event.notes or '',
        ])


def generate_care_log_excel(today=None):
    """Generate the care-log workbook.

    Returns:
        (BytesIO buffer, filename)
    """
    import openpyxl

    today = today or date.today()
    plants = get_all_plants()
    names = {plant.id: plant.name for plant in plants}

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Plants'
    _build_plants_sheet(ws, plants, today)
    _build_events_sheet(wb.create_sheet(title='Events'), get_all_events(), names)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    filename = f"garden_atlas_{today.isoformat()}.xlsx"
    return buffer, filename
