import pytest
from fastapi.testclient import TestClient

CATALOGS = [
    ("/api/v1/sections", "sections", "section", "Sun Flower"),
    ("/api/v1/grade-levels", "grade_levels", "grade_level", "Grade 7"),
    ("/api/v1/strands", "strands", "strand", "STEM"),
]


@pytest.mark.parametrize("url,plural,singular,name", CATALOGS)
def test_catalog_crud(client: TestClient, admin_headers, url, plural, singular, name):
    created = client.post(
        url, json={"name": name, "description": "First entry"}, headers=admin_headers
    )
    assert created.status_code == 201
    entry = created.json()[singular]
    assert entry["name"] == name

    fetched = client.get(f"{url}/{entry['id']}", headers=admin_headers)
    assert fetched.status_code == 200

    updated = client.put(
        f"{url}/{entry['id']}",
        json={"name": name, "description": "Changed"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()[singular]["description"] == "Changed"

    listed = client.get(url, headers=admin_headers).json()
    assert [e["id"] for e in listed[plural]] == [entry["id"]]

    deleted = client.delete(f"{url}/{entry['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"{url}/{entry['id']}", headers=admin_headers).status_code == 404
    assert client.get(url, headers=admin_headers).json()[plural] == []


@pytest.mark.parametrize("url,plural,singular,name", CATALOGS)
def test_catalog_duplicate_name(client: TestClient, admin_headers, url, plural, singular, name):
    client.post(url, json={"name": name}, headers=admin_headers)

    response = client.post(url, json={"name": name}, headers=admin_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "DUPLICATE_NAME"
    assert "name" in data["errors"]


def test_deleted_name_can_be_reused(client: TestClient, admin_headers):
    first = client.post(
        "/api/v1/sections", json={"name": "Rose"}, headers=admin_headers
    ).json()["section"]
    client.delete(f"/api/v1/sections/{first['id']}", headers=admin_headers)

    response = client.post("/api/v1/sections", json={"name": "Rose"}, headers=admin_headers)

    assert response.status_code == 201


def test_sections_filter_by_active(client: TestClient, admin_headers):
    client.post(
        "/api/v1/sections", json={"name": "Rose", "is_active": True}, headers=admin_headers
    )
    client.post(
        "/api/v1/sections", json={"name": "Lily", "is_active": False}, headers=admin_headers
    )

    data = client.get(
        "/api/v1/sections", params={"is_active": "false"}, headers=admin_headers
    ).json()

    assert [s["name"] for s in data["sections"]] == ["Lily"]


def test_strands_have_no_active_flag(client: TestClient, admin_headers):
    strand = client.post(
        "/api/v1/strands", json={"name": "HUMSS"}, headers=admin_headers
    ).json()["strand"]

    assert "is_active" not in strand


def test_catalog_reads_are_open_to_students(
    client: TestClient, student_headers, admin_headers
):
    client.post("/api/v1/grade-levels", json={"name": "Grade 8"}, headers=admin_headers)

    listed = client.get("/api/v1/grade-levels", headers=student_headers)
    created = client.post(
        "/api/v1/grade-levels", json={"name": "Grade 9"}, headers=student_headers
    )

    assert listed.status_code == 200
    assert listed.json()["pagination"]["total"] == 1
    assert created.status_code == 403


def test_section_update_without_active_flag_keeps_it(client: TestClient, admin_headers):
    section = client.post(
        "/api/v1/sections", json={"name": "Lily", "is_active": False}, headers=admin_headers
    ).json()["section"]

    updated = client.put(
        f"/api/v1/sections/{section['id']}",
        json={"name": "Lily", "description": "Morning shift"},
        headers=admin_headers,
    ).json()["section"]

    assert updated["description"] == "Morning shift"
    assert updated["is_active"] is False
