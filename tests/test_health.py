from fastapi.testclient import TestClient

from app.db.memory import MemoryStore
from app.main import create_app


def test_health_endpoints(client):
    r = client.get("/health/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "service": "realestate-api"}

    r = client.get("/health/readyz")
    assert r.status_code == 200
    assert r.json() == {"status": "ready", "checks": {"store": True}}


def test_api_health_reports_store_mode(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["mode"] == "memory"
    assert body["timestamp"]


def test_readyz_when_store_unreachable():
    store = MemoryStore()
    store.ping = lambda: False
    with TestClient(create_app(store=store)) as c:
        r = c.get("/health/readyz")
    assert r.status_code == 503
    assert r.json()["status"] == "not_ready"


def test_unknown_route(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Route not found"}


def test_unhandled_error_envelope():
    app = create_app(store=MemoryStore())

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/boom")
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Server Error", "error": "kaboom"}
