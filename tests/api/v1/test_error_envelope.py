from fastapi.testclient import TestClient


def test_unknown_route_uses_envelope(client: TestClient, admin_headers):
    response = client.get("/api/v1/nothing-here", headers=admin_headers)

    assert response.status_code == 404
    data = response.json()
    assert data["success"] is False
    assert data["error_code"] == "NOT_FOUND"


def test_method_not_allowed_uses_envelope(client: TestClient, admin_headers):
    response = client.patch("/api/v1/subjects", headers=admin_headers)

    assert response.status_code == 405
    assert response.json()["success"] is False


def test_invalid_path_parameter(client: TestClient, admin_headers):
    response = client.get("/api/v1/subjects/abc", headers=admin_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "VALIDATION_FAILED"
    assert "subject_id" in data["errors"]


def test_invalid_page_number(client: TestClient, admin_headers):
    response = client.get("/api/v1/subjects", params={"page": 0}, headers=admin_headers)

    assert response.status_code == 422
    assert "page" in response.json()["errors"]


def test_mixed_errors_are_not_reported_as_enum(client: TestClient, admin_headers):
    response = client.post(
        "/api/v1/subjects",
        json={"code": "X1", "grade_level": "Grade 99", "strand": "STEM"},
        headers=admin_headers,
    )

    data = response.json()
    assert data["error_code"] == "VALIDATION_FAILED"
    assert set(data["errors"]) == {"name", "grade_level"}


def test_missing_bearer_scheme(client: TestClient):
    response = client.get("/api/v1/students", headers={"Authorization": "Token abc"})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "message": "Unauthenticated",
        "error_code": "UNAUTHORIZED",
    }
