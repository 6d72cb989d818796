"""
Report rendering.

Turns an already-authorized list of row dicts into a downloadable file.
Three formats are supported:
  - tabular: an xlsx workbook with a bold header row (aliases "excel", "xlsx")
  - csv: plain CSV with a header row
  - paginated-document: PDF, one numbered entry per record (alias "pdf")

No access checks happen here; callers pass rows they were allowed to fetch.
"""

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from records.errors import UnsupportedFormat

Column = Tuple[str, str]  # (row key, header label)


class ReportFormat(str, Enum):
    TABULAR = "tabular"
    CSV = "csv"
    PAGINATED_DOCUMENT = "paginated-document"

    @classmethod
    def parse(cls, value) -> "ReportFormat":
        key = str(value or "").strip().lower()
        fmt = _ALIASES.get(key)
        if fmt is None:
            raise UnsupportedFormat('Invalid format. Use "excel" or "pdf"')
        return fmt


_ALIASES: Dict[str, ReportFormat] = {
    "tabular": ReportFormat.TABULAR,
    "excel": ReportFormat.TABULAR,
    "xlsx": ReportFormat.TABULAR,
    "csv": ReportFormat.CSV,
    "paginated-document": ReportFormat.PAGINATED_DOCUMENT,
    "pdf": ReportFormat.PAGINATED_DOCUMENT,
}


@dataclass
class RenderedReport:
    content: bytes
    media_type: str
    filename: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Disposition": f"attachment; filename={self.filename}"}


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _latin1(text: str) -> str:
    # core PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _sheet_value(value: Any):
    if value is None or isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    return str(value)


def render_tabular(sheet_name: str, columns: Sequence[Column], rows: List[Dict[str, Any]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name[:31]

    sheet.append([label for _, label in columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append([_sheet_value(row.get(key)) for key, _ in columns])

    for index, (_, label) in enumerate(columns, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = max(15, len(label) + 2)

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def render_csv(columns: Sequence[Column], rows: List[Dict[str, Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([label for _, label in columns])
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key, _ in columns])
    return output.getvalue().encode("utf-8")


class ReportPDF(FPDF):
    def __init__(self, title: str):
        super().__init__()
        self.report_title = title

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")


def render_paginated(title: str, columns: Sequence[Column], rows: List[Dict[str, Any]]) -> bytes:
    """
    One numbered entry per row: the first two columns form the heading,
    the rest are listed as label/value pairs below it.
    """
    pdf = ReportPDF(title)
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 12, _latin1(title), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(
        0, 6, f"Generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M')} UTC - {len(rows)} records",
        align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT,
    )
    pdf.ln(4)

    heading, details = list(columns[:2]), list(columns[2:])
    for index, row in enumerate(rows, start=1):
        pdf.set_font("Helvetica", "B", 12)
        label = " - ".join(_cell(row.get(key)) for key, _ in heading)
        pdf.cell(0, 7, _latin1(f"{index}. {label}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font("Helvetica", "", 10)
        text = " | ".join(f"{name}: {_cell(row.get(key))}" for key, name in details)
        pdf.multi_cell(0, 5, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(2)

    if not rows:
        pdf.set_font("Helvetica", "I", 11)
        pdf.cell(0, 8, "No records match the selected filters.", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    return bytes(pdf.output())


def render_report(name: str, title: str, columns: Sequence[Column], rows: List[Dict[str, Any]], fmt) -> RenderedReport:
    """Render `rows` in `fmt`; raises UnsupportedFormat for unknown formats."""
    fmt = fmt if isinstance(fmt, ReportFormat) else ReportFormat.parse(fmt)
    if fmt == ReportFormat.TABULAR:
        return RenderedReport(render_tabular(name.title(), columns, rows), XLSX_MEDIA_TYPE, f"{name}_report.xlsx")
    if fmt == ReportFormat.CSV:
        return RenderedReport(render_csv(columns, rows), "text/csv", f"{name}_report.csv")
    return RenderedReport(render_paginated(title, columns, rows), "application/pdf", f"{name}_report.pdf")
