# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Excel export of tickets.

Rows are ordered with the same tri-state table sort the ticket tables use,
so an export taken from a sorted view matches what the admin sees.
"""

import io

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from tickets.sorting import lookup

_HEADER_FONT  = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL  = PatternFill(start_color="2F5597", end_color="2F5597", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER  = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

# (header, record path, minimum column width)
_COLUMNS = [
    ("ID",            "id",              8),
    ("Created",       "createdAt",       20),
    ("Name",          "employee.name",   24),
    ("Email",         "employee.email",  28),
    ("Department",    "employee.dept",   18),
    ("Issue Type",    "issueType",       18),
    ("Sub Issue",     "subIssue",        18),
    ("Priority",      "priority",        10),
    ("Status",        "status",          10),
    ("Description",   "description",     50),
    ("Admin Comment", "adminComment",    50),
]


def _cell(value):
    if value is None:
        return ""
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return value


def build_workbook(records: list[dict]) -> io.BytesIO:
    """
    Render *records* (serialised tickets, already in the desired order) into
    an .xlsx file held in memory.  Nothing is written to disk.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Tickets"

    # -- Header row ----------------------------------------------------------
    ws.append([header for header, _, _ in _COLUMNS])
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    # -- Data rows -----------------------------------------------------------
    for record in records:
        ws.append([_cell(lookup(record, path)) for _, path, _ in _COLUMNS])
        row_idx = ws.max_row
        for col_idx in range(1, len(_COLUMNS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _THIN_BORDER

    for col_idx, (_, _, min_w) in enumerate(_COLUMNS, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = min_w

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()
    return buf
