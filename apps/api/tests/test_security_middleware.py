from __future__ import annotations

from fastapi.testclient import TestClient


def test_request_id_header_present(monkeypatch) -> None:
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    from main import create_app

    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.headers.get("x-request-id")


def test_request_id_is_echoed(monkeypatch) -> None:
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    from main import create_app

    client = TestClient(create_app())
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


def test_bearer_auth_blocks_when_enabled(monkeypatch) -> None:
    monkeypatch.setenv("API_AUTH_MODE", "bearer")
    monkeypatch.setenv("API_AUTH_TOKEN", "secret")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    from main import create_app

    client = TestClient(create_app())

    # Health is exempt so containers can be checked.
    r0 = client.get("/health")
    assert r0.status_code == 200

    r1 = client.get("/notes")
    assert r1.status_code == 401
    assert r1.json()["detail"] == "unauthorized"

    # Past the API guard, the missing GitHub token is reported on its own.
    r2 = client.get("/notes", headers={"Authorization": "Bearer secret"})
    assert r2.status_code == 401
    assert r2.json()["detail"] == "not_authenticated"
