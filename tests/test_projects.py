import pytest

from records.repository import ProjectRepository
from tests.conftest import client_payload, project_payload


@pytest.fixture
def acme(client, as_role):
    res = client.post("/api/clients", json=client_payload(), headers=as_role("admin"))
    return res.json()


@pytest.fixture
def create_project(client, as_role, acme):
    def _create(role="client_manager", **overrides):
        res = client.post("/api/projects", json=project_payload(acme["id"], **overrides), headers=as_role(role))
        assert res.status_code == 201, res.text
        return res.json()
    return _create


def _add_member(client, headers, project_id, user_id, role="Developer"):
    return client.post(f"/api/projects/{project_id}/team", json={"user": user_id, "role": role}, headers=headers)


def test_create_sets_manager_and_client(create_project, users, acme):
    project = create_project()
    assert project["projectId"] == "PROJ001"
    assert project["manager"]["id"] == users["client_manager"].id
    assert project["client"]["companyName"] == "Acme Corp"
    assert project["status"] == "Planning"
    assert project["teamMembers"] == []


def test_create_permissions(client, as_role, acme):
    assert client.post("/api/projects", json=project_payload(acme["id"]), headers=as_role("hr")).status_code == 403
    assert client.post("/api/projects", json=project_payload(acme["id"]),
                       headers=as_role("employee")).status_code == 403


def test_unknown_client_is_rejected(client, as_role):
    res = client.post("/api/projects", json=project_payload("ghost"), headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "client"


def test_client_lists_its_projects(client, as_role, acme, create_project):
    create_project()
    body = client.get(f"/api/clients/{acme['id']}", headers=as_role("admin")).json()
    assert [p["projectId"] for p in body["projects"]] == ["PROJ001"]


def test_employee_sees_only_participating_projects(client, as_role, users, create_project, make_user, headers_for):
    mine = create_project(title="Mine")
    create_project(title="Not mine")
    _add_member(client, as_role("client_manager"), mine["id"], users["employee"].id)

    res = client.get("/api/projects", headers=as_role("employee"))
    assert [p["title"] for p in res.json()["items"]] == ["Mine"]
    assert client.get(f"/api/projects/{mine['id']}", headers=as_role("employee")).status_code == 200

    outsider = headers_for(make_user(role="employee", email="outsider@company.com"))
    assert client.get("/api/projects", headers=outsider).json()["items"] == []
    assert client.get(f"/api/projects/{mine['id']}", headers=outsider).status_code == 403

    assert client.get("/api/projects", headers=as_role("hr")).json()["total"] == 2


def test_duplicate_team_member(client, as_role, users, create_project):
    project = create_project()
    headers = as_role("client_manager")
    res = _add_member(client, headers, project["id"], users["employee"].id)
    assert res.status_code == 200
    assert res.json()["teamMembers"][0]["user"]["email"] == "employee@company.com"

    res = _add_member(client, headers, project["id"], users["employee"].id, role="Tester")
    assert res.status_code == 400
    assert res.json()["message"] == "User is already in the project team"

    roster = client.get(f"/api/projects/{project['id']}", headers=headers).json()["teamMembers"]
    assert len(roster) == 1
    assert roster[0]["role"] == "Developer"


def test_team_member_must_exist(client, as_role, create_project):
    project = create_project()
    res = _add_member(client, as_role("admin"), project["id"], "ghost")
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "user"


def test_update_permissions(client, context, as_role, create_project, make_user, headers_for):
    project = create_project(role="admin")
    url = f"/api/projects/{project['id']}"

    assert client.put(url, json={"status": "Active"}, headers=as_role("hr")).status_code == 403
    assert client.put(url, json={"status": "Active"}, headers=as_role("employee")).status_code == 403

    # an employee who manages the project may edit it
    manager = make_user(role="employee", email="lead@company.com")
    with context.database.session_scope() as db:
        ProjectRepository.update(db, ProjectRepository.get(db, project["id"]), {"manager_id": manager.id})
    res = client.put(url, json={"status": "Active"}, headers=headers_for(manager))
    assert res.status_code == 200
    assert res.json()["status"] == "Active"


def test_update_merges_budget_and_validates(client, as_role, create_project):
    project = create_project()
    url = f"/api/projects/{project['id']}"
    headers = as_role("client_manager")

    res = client.put(url, json={"budget": {"actual": 1000}}, headers=headers)
    assert res.status_code == 200
    assert res.json()["budget"]["estimated"] == 50000
    assert res.json()["budget"]["actual"] == 1000

    res = client.put(url, json={"priority": "Urgent"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "priority"


def test_milestones_and_expenses_round_trip(client, as_role, create_project):
    project = create_project(
        timeline={
            "startDate": "2024-01-01",
            "endDate": "2024-12-31",
            "milestones": [{"title": "Prototype", "dueDate": "2024-03-01"}],
        },
        budget={"estimated": 100, "expenses": [{"amount": 25, "date": "2024-02-02", "category": "Travel"}]},
    )
    assert project["timeline"]["milestones"][0]["status"] == "Pending"
    assert project["budget"]["expenses"][0]["date"] == "2024-02-02"

    res = client.put(f"/api/projects/{project['id']}", json={"tags": ["rnd"]}, headers=as_role("admin"))
    assert res.status_code == 200
    assert res.json()["budget"]["expenses"][0]["date"] == "2024-02-02"
