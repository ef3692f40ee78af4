from fastapi.testclient import TestClient

import digital_house.main as main
from digital_house.state import AppLifecycle, LifecyclePhase


def test_home_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["service"] == "digital-house"


def test_health_reports_ready_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "status": "ok", "database": "ready"}


def test_landing_headline(client):
    response = client.get("/landing")

    assert response.status_code == 200
    assert response.json()["headline"] == "Connecting Our Community"


def test_routes_return_503_until_database_ready():
    main.app.state.lifecycle = AppLifecycle()
    # No context manager: startup has not run, so the app is still STARTING.
    test_client = TestClient(main.app)

    response = test_client.post("/auth/login-request", json={"email": "someone@example.com"})
    assert response.status_code == 503
    assert response.json()["ok"] is False

    health = test_client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "starting"


def test_failed_database_init_keeps_serving_health(monkeypatch):
    def _boom():
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(main, "init_db", _boom)
    main.app.state.lifecycle = AppLifecycle()

    with TestClient(main.app) as test_client:
        assert main.app.state.lifecycle.phase == LifecyclePhase.FAILED
        assert test_client.get("/health").json()["database"] == "failed"

        response = test_client.get("/options/locations")
        assert response.status_code == 503
        assert "Database unavailable" in response.json()["message"]


def test_unknown_route_uses_error_shape(client):
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "message": "Not Found"}


def test_options_are_seeded_in_order(client):
    locations = client.get("/options/locations").json()["locations"]
    kulams = client.get("/options/kulams").json()["kulams"]

    assert [item["name"] for item in locations][:3] == ["Chennai", "Coimbatore", "Madurai"]
    assert locations[-1]["name"] == "Other"
    assert [item["name"] for item in kulams] == [
        "Semba Vattuar",
        "Karaiya Vettuvar",
        "Paandi Vettuvar",
        "Other",
    ]
