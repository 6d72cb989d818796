import csv
import io

import pytest
from openpyxl import load_workbook

from reports.renderer import XLSX_MEDIA_TYPE
from tests.conftest import client_payload, employee_payload, project_payload


def _csv(res):
    return list(csv.DictReader(io.StringIO(res.content.decode("utf-8"))))


def _sheet(res):
    rows = list(load_workbook(io.BytesIO(res.content)).active.iter_rows(values_only=True))
    return [dict(zip(rows[0], row)) for row in rows[1:]]


@pytest.fixture
def seeded(client, as_role, users):
    hr, manager = as_role("hr"), as_role("client_manager")
    client.post("/api/employees", json=employee_payload(user=users["employee"].id), headers=hr)
    sales = employee_payload(status="On Leave")
    sales["jobDetails"]["department"] = "Sales"
    client.post("/api/employees", json=sales, headers=hr)

    acme = client.post("/api/clients", json=client_payload(), headers=manager).json()
    mine = client.post("/api/projects", json=project_payload(acme["id"], title="Mine"), headers=manager).json()
    client.post("/api/projects", json=project_payload(acme["id"], title="Other", priority="Low"), headers=manager)
    client.post(f"/api/projects/{mine['id']}/team", json={"user": users["employee"].id, "role": "Dev"},
                headers=manager)


def test_employee_report_spreadsheet(client, as_role, seeded):
    res = client.post("/api/reports/employees", json={"format": "excel"}, headers=as_role("hr"))
    assert res.status_code == 200
    assert res.headers["content-type"] == XLSX_MEDIA_TYPE
    assert res.headers["content-disposition"] == "attachment; filename=employees_report.xlsx"
    rows = _sheet(res)
    assert [r["Employee ID"] for r in rows] == ["EMP002", "EMP001"]
    assert rows[1]["Email"] == "employee@company.com"
    assert rows[1]["Salary"] == 75000


def test_employee_report_filters(client, as_role, seeded):
    res = client.post("/api/reports/employees", json={"filters": {"department": "Sales"}}, headers=as_role("admin"))
    assert [r["Department"] for r in _sheet(res)] == ["Sales"]
    res = client.post("/api/reports/employees", json={"filters": {"status": "Active"}}, headers=as_role("admin"))
    assert [r["Status"] for r in _sheet(res)] == ["Active"]


def test_employee_report_defaults_to_tabular(client, as_role, seeded):
    res = client.post("/api/reports/employees", headers=as_role("hr"))
    assert res.status_code == 200
    assert res.headers["content-type"] == XLSX_MEDIA_TYPE


@pytest.mark.parametrize("role", ["client_manager", "employee"])
def test_employee_report_forbidden(client, as_role, role):
    res = client.post("/api/reports/employees", json={"format": "pdf"}, headers=as_role(role))
    assert res.status_code == 403


def test_forbidden_wins_over_bad_format(client, as_role):
    res = client.post("/api/reports/employees", json={"format": "docx"}, headers=as_role("employee"))
    assert res.status_code == 403


def test_unsupported_format(client, as_role):
    res = client.post("/api/reports/projects", json={"format": "docx"}, headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["message"] == 'Invalid format. Use "excel" or "pdf"'


def test_project_report_pdf(client, as_role, seeded):
    res = client.post("/api/reports/projects", json={"format": "pdf"}, headers=as_role("client_manager"))
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.headers["content-disposition"] == "attachment; filename=projects_report.pdf"
    assert res.content.startswith(b"%PDF")


def test_project_report_scoped_for_employee(client, as_role, seeded):
    res = client.post("/api/reports/projects", json={"format": "csv"}, headers=as_role("employee"))
    assert res.status_code == 200
    rows = _csv(res)
    assert [r["Title"] for r in rows] == ["Mine"]
    assert rows[0]["Client"] == "Acme Corp"
    assert rows[0]["Manager"] == "Carl Manning"
    assert rows[0]["Team Size"] == "1"


def test_project_report_filters(client, as_role, seeded):
    res = client.post("/api/reports/projects", json={"filters": {"priority": "Low"}}, headers=as_role("admin"))
    assert [r["Title"] for r in _sheet(res)] == ["Other"]


def test_report_stats(client, as_role, seeded):
    res = client.get("/api/reports/stats", headers=as_role("employee"))
    assert res.status_code == 200
    body = res.json()
    assert body["totalEmployees"] == 1
    assert body["totalClients"] == 1
    assert body["totalProjects"] == 2
    assert body["projectsByStatus"] == [{"status": "Planning", "count": 2}]
    assert body["employeesByDepartment"] == [
        {"department": "Engineering", "count": 1},
        {"department": "Sales", "count": 1},
    ]
