"""HTTP flows for folders, tags and Cornell notes."""

import frontmatter


def test_health_does_not_require_auth(client) -> None:
    response = client.get("/health", headers={"Authorization": ""})

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_requests_without_token_are_rejected(client) -> None:
    response = client.get("/api/notes", headers={"Authorization": ""})

    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"

    response = client.get("/api/notes", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authentication credentials"


def test_folder_tree_flow(client) -> None:
    biology = client.post("/api/folders", json={"name": "Biology"}).json()
    cells = client.post("/api/folders", json={"name": "Cells", "parent_id": biology["id"]})
    assert cells.status_code == 201
    cells = cells.json()

    top_level = client.get("/api/folders", params={"root_only": True}).json()
    assert [folder["id"] for folder in top_level] == [biology["id"]]
    children = client.get("/api/folders", params={"parent_id": biology["id"]}).json()
    assert [folder["id"] for folder in children] == [cells["id"]]

    cycle = client.patch(f"/api/folders/{biology['id']}", json={"parent_id": cells["id"]})
    assert cycle.status_code == 400
    assert cycle.json()["message"] == "A folder cannot be moved inside itself"

    note = client.post("/api/notes", json={"title": "Mitosis", "folder_id": cells["id"]}).json()
    contents = client.get(f"/api/folders/{cells['id']}").json()
    assert [(item["kind"], item["id"]) for item in contents["items"]] == [("cornell", note["id"])]

    assert client.delete(f"/api/folders/{biology['id']}").status_code == 204
    assert client.get("/api/folders").json() == []
    assert client.get(f"/api/notes/{note['id']}").json()["folder_id"] is None

    missing = client.get(f"/api/folders/{cells['id']}")
    assert missing.status_code == 404
    assert missing.json()["detail"] == {"kind": "folder"}


def test_note_crud_and_export(client) -> None:
    tag = client.post("/api/tags", json={"name": "Exam", "color": "hsl(0, 80%, 50%)"}).json()
    created = client.post(
        "/api/notes",
        json={
            "title": "Anatomy",
            "subject": "Biology",
            "date": "2025-03-10",
            "keywords": [{"text": "Femur"}],
            "main_notes": "The femur is the longest bone.",
            "summary": "Leg bones.",
            "priority": "high",
            "tag_ids": [tag["id"]],
        },
    )
    assert created.status_code == 201
    note = created.json()
    assert note["tags"] == [tag]
    assert note["keywords"][0]["text"] == "Femur"

    saved = client.put(
        f"/api/notes/{note['id']}",
        json={"title": "Anatomy II", "date": "2025-03-10", "tag_ids": []},
    )
    assert saved.status_code == 200
    assert saved.json()["title"] == "Anatomy II"
    assert saved.json()["tags"] == []
    assert saved.json()["created_at"] == note["created_at"]

    export = client.get(f"/api/notes/{note['id']}/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/markdown")
    assert 'filename="Anatomy-II.md"' in export.headers["content-disposition"]
    assert frontmatter.loads(export.text)["title"] == "Anatomy II"

    assert client.delete(f"/api/notes/{note['id']}").status_code == 204
    missing = client.get(f"/api/notes/{note['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_put_creates_note_with_client_id(client) -> None:
    response = client.put("/api/notes/client-generated-id", json={"title": "Offline draft"})

    assert response.status_code == 200
    assert client.get("/api/notes/client-generated-id").json()["title"] == "Offline draft"


def test_validation_errors_use_error_envelope(client) -> None:
    response = client.post("/api/notes", json={"priority": "urgent"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    fields = {tuple(error["loc"]) for error in body["detail"]["errors"]}
    assert ("body", "title") in fields
    assert ("body", "priority") in fields


def test_unknown_folder_reference_is_bad_request(client) -> None:
    response = client.post("/api/notes", json={"title": "Lost", "folder_id": "missing"})

    assert response.status_code == 400
    assert response.json()["message"] == "Unknown folder: missing"


def test_tags_crud(client) -> None:
    tag = client.post("/api/tags", json={"name": "Review"}).json()

    renamed = client.patch(f"/api/tags/{tag['id']}", json={"name": "Revision"})
    assert renamed.json()["name"] == "Revision"
    assert [t["name"] for t in client.get("/api/tags").json()] == ["Revision"]

    assert client.delete(f"/api/tags/{tag['id']}").status_code == 204
    assert client.delete(f"/api/tags/{tag['id']}").status_code == 404
