from fastapi.testclient import TestClient


def test_health_check(client: TestClient):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "healthy"
    assert data["database_status"] == "healthy"


def test_health_check_is_public(client: TestClient):
    # No Authorization header
    response = client.get("/api/v1/health")
    assert response.status_code == 200
