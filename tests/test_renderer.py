import csv
import io

import pytest
from openpyxl import load_workbook

from records.errors import UnsupportedFormat
from reports.renderer import XLSX_MEDIA_TYPE, ReportFormat, render_report

COLUMNS = [("code", "Code"), ("name", "Name"), ("amount", "Amount")]
ROWS = [
    {"code": "EMP001", "name": "Zoë Ångström", "amount": 1200.0},
    {"code": "EMP002", "name": "Bob, Jr.", "amount": None},
]


@pytest.mark.parametrize("alias,expected", [
    ("excel", ReportFormat.TABULAR),
    ("XLSX", ReportFormat.TABULAR),
    ("tabular", ReportFormat.TABULAR),
    ("CSV", ReportFormat.CSV),
    ("pdf", ReportFormat.PAGINATED_DOCUMENT),
    ("paginated-document", ReportFormat.PAGINATED_DOCUMENT),
])
def test_format_aliases(alias, expected):
    assert ReportFormat.parse(alias) is expected


@pytest.mark.parametrize("value", ["docx", "", None])
def test_unsupported_format(value):
    with pytest.raises(UnsupportedFormat):
        ReportFormat.parse(value)


def test_tabular_report_is_a_workbook():
    report = render_report("employees", "Employees Report", COLUMNS, ROWS, "excel")
    assert report.media_type == XLSX_MEDIA_TYPE
    assert report.filename == "employees_report.xlsx"
    assert report.headers["Content-Disposition"] == "attachment; filename=employees_report.xlsx"

    sheet = load_workbook(io.BytesIO(report.content)).active
    assert sheet.title == "Employees"
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Code", "Name", "Amount")
    assert all(cell.font.bold for cell in sheet[1])
    assert rows[1] == ("EMP001", "Zoë Ångström", 1200)
    assert rows[2] == ("EMP002", "Bob, Jr.", None)


def test_csv_report():
    report = render_report("employees", "Employees Report", COLUMNS, ROWS, "csv")
    assert report.media_type == "text/csv"
    assert report.filename == "employees_report.csv"

    rows = list(csv.reader(io.StringIO(report.content.decode("utf-8"))))
    assert rows[0] == ["Code", "Name", "Amount"]
    assert rows[1] == ["EMP001", "Zoë Ångström", "1200"]
    assert rows[2] == ["EMP002", "Bob, Jr.", ""]


def test_paginated_report():
    report = render_report("projects", "Projects Report", COLUMNS, ROWS, "pdf")
    assert report.media_type == "application/pdf"
    assert report.filename == "projects_report.pdf"
    assert report.content.startswith(b"%PDF")


def test_paginated_report_without_rows():
    report = render_report("projects", "Projects Report", COLUMNS, [], ReportFormat.PAGINATED_DOCUMENT)
    assert report.content.startswith(b"%PDF")
