from fastapi.testclient import TestClient

from badminton_shop.api import create_app
from badminton_shop.domain.exceptions import ConflictError


def _app_with_failing_routes():
    app = create_app()

    @app.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/conflict")
    def conflict():
        raise ConflictError("Already exists")

    return app


def test_unhandled_error_is_a_generic_500():
    with TestClient(_app_with_failing_routes(), raise_server_exceptions=False) as c:
        resp = c.get("/boom")

    assert resp.status_code == 500
    body = resp.json()
    assert body == {"success": False, "message": "Internal server error", "error": "internal"}
    assert "hunter2" not in resp.text


def test_domain_error_maps_to_its_status():
    with TestClient(_app_with_failing_routes()) as c:
        resp = c.get("/conflict")

    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "Already exists", "error": "conflict"}


def test_unknown_route_uses_the_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Not Found", "error": "not_found"}


def test_wrong_method_uses_the_envelope(client):
    resp = client.delete("/api/health")
    assert resp.status_code == 405
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Method Not Allowed"
    assert "allow" in {k.lower() for k in resp.headers}
