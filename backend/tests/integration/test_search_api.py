"""Global search over the HTTP API."""

from backend.src.api.middleware import auth_middleware
from backend.src.services import config as config_module


def seed(client) -> dict:
    tag = client.post("/api/tags", json={"name": "Anatomy"}).json()
    note = client.post(
        "/api/notes",
        json={
            "title": "Skeleton",
            "summary": "Overview of human anatomy and the femur",
            "keywords": [{"id": "kw1", "text": "Anatomy basics"}],
            "tag_ids": [tag["id"]],
        },
    ).json()
    mind_map = client.post(
        "/api/mindmaps",
        json={"central_concept": "Anatomy", "nodes": [{"text": "Bones"}]},
    ).json()
    return {"tag": tag, "note": note, "mind_map": mind_map}


def test_blank_query_prompts(client) -> None:
    response = client.get("/api/search", params={"q": "  "})

    assert response.status_code == 200
    assert response.json() == {"query": "  ", "state": "prompt", "results": [], "total": 0}


def test_no_match_is_empty_state(client) -> None:
    seed(client)

    body = client.get("/api/search", params={"q": "zoology"}).json()

    assert body["state"] == "empty"
    assert body["results"] == []


def test_results_in_discovery_order_with_highlights(client) -> None:
    data = seed(client)

    body = client.get("/api/search", params={"q": "anatomy"}).json()

    assert body["state"] == "results"
    assert body["total"] == 4
    assert [(r["kind"], r["id"]) for r in body["results"]] == [
        ("cornell", data["note"]["id"]),
        ("keyword", f"{data['note']['id']}-kw1"),
        ("mindmap", data["mind_map"]["id"]),
        ("tag", data["tag"]["id"]),
    ]

    note_hit = body["results"][0]
    assert note_hit["matched_excerpt"] == "Overview of human anatomy and the femur"
    assert [s["text"] for s in note_hit["excerpt_segments"] if s["match"]] == ["anatomy"]
    assert note_hit["navigation_target"] == "/cornell"

    tag_hit = body["results"][3]
    assert tag_hit["subtitle"] == "Tag used in 1 note(s)"
    assert tag_hit["title_segments"] == [{"text": "Anatomy", "match": True}]


def test_search_is_scoped_to_the_user(client, monkeypatch) -> None:
    seed(client)
    monkeypatch.setenv("JWT_SECRET_KEY", "a-secure-secret-value-123")
    config_module.reload_config()

    auth_middleware.reset_auth_service()
    other_token = auth_middleware.get_auth_service().create_jwt("someone-else")

    body = client.get(
        "/api/search", params={"q": "anatomy"}, headers={"Authorization": f"Bearer {other_token}"}
    ).json()

    assert body["state"] == "empty"
