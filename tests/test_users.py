import pytest

from records.models import Client, Document, Employee, Project
from tests.conftest import PASSWORD, client_payload, employee_payload, project_payload


@pytest.mark.parametrize("role,expected", [
    ("admin", 200), ("hr", 403), ("client_manager", 403), ("employee", 403),
])
def test_list_users_admin_only(client, as_role, role, expected):
    assert client.get("/api/users", headers=as_role(role)).status_code == expected


def test_list_users_search_and_role_filter(client, as_role):
    body = client.get("/api/users?role=hr", headers=as_role("admin")).json()
    assert [u["email"] for u in body["items"]] == ["hr@company.com"]
    body = client.get("/api/users?search=MANN", headers=as_role("admin")).json()
    assert [u["email"] for u in body["items"]] == ["manager@company.com"]
    assert "passwordHash" not in body["items"][0]
    assert "password_hash" not in body["items"][0]


def test_get_user_self_or_admin(client, as_role, users):
    employee_id = users["employee"].id
    assert client.get(f"/api/users/{employee_id}", headers=as_role("employee")).status_code == 200
    assert client.get(f"/api/users/{users['hr'].id}", headers=as_role("employee")).status_code == 403
    assert client.get(f"/api/users/{employee_id}", headers=as_role("admin")).status_code == 200
    assert client.get("/api/users/missing", headers=as_role("admin")).status_code == 404


def test_profile(client, as_role):
    res = client.get("/api/users/profile/me", headers=as_role("client_manager"))
    assert res.status_code == 200
    assert res.json()["email"] == "manager@company.com"

    res = client.put("/api/users/profile/me", json={"phone": "555-1234", "role": "admin"},
                     headers=as_role("client_manager"))
    assert res.status_code == 200
    assert res.json()["phone"] == "555-1234"
    assert res.json()["role"] == "client_manager"


def test_employee_cannot_escalate_own_role(client, as_role, users):
    res = client.put(f"/api/users/{users['employee'].id}", json={"role": "admin", "position": "Engineer"},
                     headers=as_role("employee"))
    assert res.status_code == 200
    assert res.json()["role"] == "employee"
    assert res.json()["position"] == "Engineer"


def test_admin_updates_role(client, as_role, users):
    res = client.put(f"/api/users/{users['employee'].id}", json={"role": "hr"}, headers=as_role("admin"))
    assert res.status_code == 200
    assert res.json()["role"] == "hr"


def test_update_rejects_taken_email(client, as_role, users):
    res = client.put(f"/api/users/{users['employee'].id}", json={"email": "HR@company.com"},
                     headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "email"


def test_admin_cannot_delete_self(client, as_role, users):
    res = client.delete(f"/api/users/{users['admin'].id}", headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "id"


def test_delete_nulls_references(client, context, as_role, users):
    manager = users["client_manager"]
    admin = as_role("admin")
    headers = as_role("client_manager")

    client.post("/api/employees", json=employee_payload(user=manager.id), headers=admin)
    acme = client.post("/api/clients", json=client_payload(), headers=headers).json()
    project = client.post("/api/projects", json=project_payload(acme["id"]), headers=headers).json()
    client.post(f"/api/projects/{project['id']}/team", json={"user": manager.id, "role": "Lead"}, headers=admin)
    client.post(
        "/api/documents/upload",
        data={"title": "Brief", "category": "Project", "relatedTo.modelType": "Project",
              "relatedTo.modelId": project["id"]},
        files={"document": ("brief.txt", b"brief", "text/plain")},
        headers=headers,
    )

    assert client.delete(f"/api/users/{manager.id}", headers=as_role("hr")).status_code == 403
    res = client.delete(f"/api/users/{manager.id}", headers=admin)
    assert res.status_code == 200

    with context.database.session_scope() as db:
        assert db.query(Employee).one().user_id is None
        assert db.query(Client).one().assigned_manager_id is None
        assert db.query(Project).one().manager_id is None
        assert db.query(Project).one().team_members == []
        assert db.query(Document).one().uploaded_by_id is None

    res = client.get(f"/api/projects/{project['id']}", headers=admin)
    assert res.status_code == 200
    assert res.json()["manager"] is None
    assert client.get(f"/api/clients/{acme['id']}", headers=admin).json()["assignedManager"] is None


def test_change_own_password(client, as_role, users):
    url = f"/api/users/{users['employee'].id}/password"
    headers = as_role("employee")

    res = client.put(url, json={"currentPassword": "wrong", "newPassword": "newpass1"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "currentPassword"

    res = client.put(url, json={"currentPassword": PASSWORD, "newPassword": "newpass1"}, headers=headers)
    assert res.status_code == 200

    login = client.post("/api/auth/login", json={"email": "employee@company.com", "password": "newpass1"})
    assert login.status_code == 200


def test_admin_resets_password(client, as_role, users):
    url = f"/api/users/{users['hr'].id}/password"
    assert client.put(url, json={"newPassword": "reset99"}, headers=as_role("employee")).status_code == 403
    assert client.put(url, json={"newPassword": "reset99"}, headers=as_role("admin")).status_code == 200
    assert client.post("/api/auth/login", json={"email": "hr@company.com", "password": "reset99"}).status_code == 200


def test_deactivated_user_token_rejected(client, as_role, users):
    client.put(f"/api/users/{users['employee'].id}", json={"isActive": False}, headers=as_role("admin"))
    assert client.get("/api/auth/me", headers=as_role("employee")).status_code == 401
