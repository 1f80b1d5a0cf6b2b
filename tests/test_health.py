from fastapi.testclient import TestClient

import kairopay.main as main


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["timestamp"].endswith("Z")


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Not Found"},
    }


def test_shutdown_disposes_engine(session_factory, monkeypatch):
    calls = []

    async def recording_close_db():
        calls.append("closed")

    monkeypatch.setattr(main, "close_db", recording_close_db)
    with TestClient(main.app) as client:
        assert client.get("/api/health").status_code == 200
        assert calls == []
    assert calls == ["closed"]
