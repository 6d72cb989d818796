from pathlib import Path

import pytest

ROLES = ["admin", "hr", "client_manager", "employee"]


@pytest.fixture
def upload(client, as_role):
    def _upload(role="admin", content=b"quarterly numbers", filename="numbers.txt",
                mime="text/plain", expected=201, **fields):
        data = {
            "title": "Quarterly report",
            "category": "Financial",
            "relatedTo.modelType": "Client",
            "relatedTo.modelId": "client-1",
        }
        data.update(fields)
        res = client.post(
            "/api/documents/upload",
            data=data,
            files={"document": (filename, content, mime)},
            headers=as_role(role),
        )
        assert res.status_code == expected, res.text
        return res.json()
    return _upload


def test_upload_creates_record(upload, users):
    doc = upload(role="employee")
    assert doc["documentId"] == "DOC001"
    assert doc["fileName"] == "numbers.txt"
    assert doc["fileType"] == ".txt"
    assert doc["fileSize"] == len(b"quarterly numbers")
    assert doc["fileUrl"].startswith("/uploads/document-")
    assert doc["version"] == {"current": 1, "history": []}
    assert doc["uploadedBy"] == {"id": users["employee"].id, "firstName": "Eve", "lastName": "Evans"}
    assert doc["accessControl"] == {"view": ["admin", "hr", "client_manager"], "edit": ["admin", "hr"]}
    assert doc["isArchived"] is False


def test_upload_with_explicit_acl(upload):
    doc = upload(**{"accessControl.view": "hr, employee", "accessControl.edit": "hr"})
    assert doc["accessControl"] == {"view": ["hr", "employee"], "edit": ["hr"]}


def test_upload_rejects_disallowed_type(upload):
    body = upload(filename="virus.exe", mime="application/octet-stream", expected=400)
    assert body["errors"][0]["field"] == "document"


def test_upload_rejects_bad_metadata_before_storing(upload, settings):
    body = upload(category="Secret", expected=400)
    assert body["errors"][0]["field"] == "category"
    assert list(Path(settings.upload_dir).iterdir()) == []


def test_upload_requires_file(client, as_role):
    res = client.post("/api/documents/upload", data={"title": "x"}, headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "document"


def test_upload_too_large(upload, settings):
    upload(content=b"x" * (settings.max_upload_bytes + 1), expected=413)


@pytest.mark.parametrize("role", ROLES)
def test_acl_denies_every_role_not_listed(client, as_role, upload, role):
    others = ",".join(r for r in ROLES if r != role)
    doc = upload(**{"accessControl.view": others, "accessControl.edit": others})
    headers = as_role(role)

    assert client.get(f"/api/documents/{doc['id']}", headers=headers).status_code == 403
    assert client.put(f"/api/documents/{doc['id']}", json={"title": "Hacked"}, headers=headers).status_code == 403
    assert client.get(f"/api/documents/{doc['id']}/download", headers=headers).status_code == 403
    listed = client.get("/api/documents", headers=headers).json()["items"]
    assert doc["id"] not in [d["id"] for d in listed]


def test_view_without_edit(client, as_role, upload):
    doc = upload(**{"accessControl.view": "employee", "accessControl.edit": "admin"})
    headers = as_role("employee")
    assert client.get(f"/api/documents/{doc['id']}", headers=headers).status_code == 200
    assert client.put(f"/api/documents/{doc['id']}", json={"title": "x"}, headers=headers).status_code == 403


def test_update_appends_version_history(client, as_role, users, upload):
    doc = upload()
    res = client.put(
        f"/api/documents/{doc['id']}",
        json={"title": "Quarterly report v2", "changes": "Fixed totals"},
        headers=as_role("hr"),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Quarterly report v2"
    assert body["version"]["current"] == 2
    entry = body["version"]["history"][0]
    assert entry["version"] == 2
    assert entry["changes"] == "Fixed totals"
    assert entry["updatedBy"] == users["hr"].id
    assert entry["fileUrl"] == doc["fileUrl"]

    body = client.put(f"/api/documents/{doc['id']}", json={}, headers=as_role("hr")).json()
    assert body["version"]["current"] == 3
    assert body["version"]["history"][-1]["changes"] == "Document updated"


def test_update_changes_acl(client, as_role, upload):
    doc = upload()
    res = client.put(
        f"/api/documents/{doc['id']}",
        json={"accessControl": {"view": ["admin", "employee"]}},
        headers=as_role("admin"),
    )
    assert res.status_code == 200
    assert res.json()["accessControl"] == {"view": ["admin", "employee"], "edit": ["admin", "hr"]}
    assert client.get(f"/api/documents/{doc['id']}", headers=as_role("employee")).status_code == 200
    assert client.get(f"/api/documents/{doc['id']}", headers=as_role("client_manager")).status_code == 403


def test_update_validates(client, as_role, upload):
    doc = upload()
    res = client.put(f"/api/documents/{doc['id']}", json={"relatedTo": {"modelType": "Invoice"}},
                     headers=as_role("admin"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "relatedTo.modelType"


def test_archive(client, as_role, upload):
    doc = upload()
    url = f"/api/documents/{doc['id']}/archive"
    assert client.put(url, headers=as_role("client_manager")).status_code == 403

    res = client.put(url, headers=as_role("hr"))
    assert res.status_code == 200
    assert res.json()["message"] == "Document archived successfully"
    assert res.json()["document"]["isArchived"] is True

    assert client.get("/api/documents", headers=as_role("admin")).json()["items"] == []
    # archived documents stay reachable by id
    assert client.get(f"/api/documents/{doc['id']}", headers=as_role("admin")).status_code == 200


def test_list_filters(client, as_role, upload):
    upload(title="Payroll", category="Financial")
    upload(title="NDA", category="Contract", **{"relatedTo.modelType": "Project"})

    res = client.get("/api/documents?category=Contract", headers=as_role("admin"))
    assert [d["title"] for d in res.json()["items"]] == ["NDA"]
    res = client.get("/api/documents?modelType=Client", headers=as_role("admin"))
    assert [d["title"] for d in res.json()["items"]] == ["Payroll"]
    res = client.get("/api/documents?search=pay", headers=as_role("admin"))
    assert res.json()["total"] == 1


def test_download(client, as_role, upload):
    doc = upload(filename="rapport é.txt")
    res = client.get(f"/api/documents/{doc['id']}/download", headers=as_role("hr"))
    assert res.status_code == 200
    assert res.content == b"quarterly numbers"
    assert res.headers["content-type"].startswith("text/plain")
    assert res.headers["content-disposition"] == "attachment; filename*=UTF-8''rapport%20%C3%A9.txt"


def test_download_missing_file(client, as_role, upload, settings):
    doc = upload()
    for stored in Path(settings.upload_dir).iterdir():
        stored.unlink()
    assert client.get(f"/api/documents/{doc['id']}/download", headers=as_role("admin")).status_code == 404


def test_unknown_document(client, as_role):
    assert client.get("/api/documents/nope", headers=as_role("admin")).status_code == 404
