import pytest

from tests.conftest import employee_payload


@pytest.fixture
def create_employee(client, as_role):
    def _create(**overrides):
        res = client.post("/api/employees", json=employee_payload(**overrides), headers=as_role("hr"))
        assert res.status_code == 201, res.text
        return res.json()
    return _create


def test_create_assigns_sequential_ids(create_employee, users):
    first = create_employee(user=users["employee"].id)
    second = create_employee()
    assert first["employeeId"] == "EMP001"
    assert second["employeeId"] == "EMP002"
    assert first["user"]["email"] == "employee@company.com"
    # user defaults to the creator
    assert second["user"]["id"] == users["hr"].id
    assert first["status"] == "Active"


@pytest.mark.parametrize("role,expected", [
    ("admin", 201), ("hr", 201), ("client_manager", 403), ("employee", 403),
])
def test_create_permissions(client, as_role, role, expected):
    res = client.post("/api/employees", json=employee_payload(), headers=as_role(role))
    assert res.status_code == expected


def test_invalid_enum_reports_field(client, as_role):
    payload = employee_payload()
    payload["jobDetails"]["employmentType"] = "Freelance"
    res = client.post("/api/employees", json=payload, headers=as_role("hr"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "jobDetails.employmentType"


def test_missing_required_fields(client, as_role):
    res = client.post("/api/employees", json={"personalDetails": {"firstName": "X"}}, headers=as_role("admin"))
    assert res.status_code == 400
    fields = {e["field"] for e in res.json()["errors"]}
    assert "jobDetails" in fields
    assert "personalDetails.lastName" in fields


def test_unknown_manager_is_rejected(client, as_role):
    payload = employee_payload()
    payload["jobDetails"]["manager"] = "does-not-exist"
    res = client.post("/api/employees", json=payload, headers=as_role("hr"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "jobDetails.manager"


def test_employee_role_sees_only_active(client, as_role, create_employee):
    create_employee()
    create_employee(status="On Leave")
    create_employee(status="Terminated")

    res = client.get("/api/employees", headers=as_role("employee"))
    assert res.status_code == 200
    assert [e["status"] for e in res.json()["items"]] == ["Active"]

    # status filter cannot widen the scope
    res = client.get("/api/employees?status=Terminated", headers=as_role("employee"))
    assert [e["status"] for e in res.json()["items"]] == ["Active"]

    res = client.get("/api/employees", headers=as_role("hr"))
    assert res.json()["total"] == 3


def test_employee_reads_only_own_record(client, as_role, users, create_employee):
    own = create_employee(user=users["employee"].id)
    other = create_employee()

    assert client.get(f"/api/employees/{own['id']}", headers=as_role("employee")).status_code == 200
    assert client.get(f"/api/employees/{other['id']}", headers=as_role("employee")).status_code == 403
    assert client.get(f"/api/employees/{other['id']}", headers=as_role("client_manager")).status_code == 200


def test_search_and_filters(client, as_role, create_employee):
    create_employee()
    payload = employee_payload()
    payload["personalDetails"]["firstName"] = "Percy"
    payload["jobDetails"]["department"] = "Sales"
    client.post("/api/employees", json=payload, headers=as_role("hr"))

    res = client.get("/api/employees?search=perc", headers=as_role("admin"))
    assert [e["personalDetails"]["firstName"] for e in res.json()["items"]] == ["Percy"]

    res = client.get("/api/employees?department=Engineering", headers=as_role("admin"))
    assert res.json()["total"] == 1

    assert client.get("/api/employees?page=0", headers=as_role("admin")).status_code == 400


def test_update_merges_nested_fields(client, as_role, create_employee):
    employee = create_employee()
    res = client.put(
        f"/api/employees/{employee['id']}",
        json={"jobDetails": {"position": "Lead Developer"}, "status": "On Leave"},
        headers=as_role("hr"),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["jobDetails"]["position"] == "Lead Developer"
    assert body["jobDetails"]["department"] == "Engineering"
    assert body["personalDetails"]["address"]["city"] == "Springfield"
    assert body["status"] == "On Leave"
    assert body["employeeId"] == employee["employeeId"]


def test_update_revalidates_whole_record(client, as_role, create_employee):
    employee = create_employee()
    res = client.put(
        f"/api/employees/{employee['id']}",
        json={"personalDetails": {"gender": "Unknown"}},
        headers=as_role("admin"),
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "personalDetails.gender"

    unchanged = client.get(f"/api/employees/{employee['id']}", headers=as_role("admin")).json()
    assert unchanged["personalDetails"]["gender"] == "Female"


def test_update_sets_manager(client, as_role, create_employee):
    manager = create_employee()
    report = create_employee()
    res = client.put(
        f"/api/employees/{report['id']}",
        json={"jobDetails": {"manager": manager["id"]}},
        headers=as_role("hr"),
    )
    assert res.status_code == 200
    assert res.json()["jobDetails"]["manager"]["employeeId"] == manager["employeeId"]


def test_delete(client, as_role, create_employee):
    employee = create_employee()
    assert client.delete(f"/api/employees/{employee['id']}", headers=as_role("hr")).status_code == 403
    assert client.delete(f"/api/employees/{employee['id']}", headers=as_role("admin")).status_code == 200
    assert client.get(f"/api/employees/{employee['id']}", headers=as_role("admin")).status_code == 404


def test_unknown_employee(client, as_role):
    assert client.get("/api/employees/nope", headers=as_role("admin")).status_code == 404
    assert client.put("/api/employees/nope", json={}, headers=as_role("admin")).status_code == 404
