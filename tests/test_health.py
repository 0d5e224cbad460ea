def test_liveness(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "online"
    assert body["environment"] == "testing"


def test_readiness_counts_tables(client, student):
    response = client.get("/api/health/db")

    assert response.status_code == 200
    tables = response.get_json()["tables"]
    assert tables["profiles"] == 1
    assert tables["courses"] == 0
    assert "lesson_progress" in tables


def test_home(client):
    assert client.get("/").get_json()["health"] == "/api/health"
