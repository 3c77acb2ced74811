from __future__ import annotations

import runpy
from pathlib import Path

from fastapi.testclient import TestClient

from photo_relay.main import create_app
from photo_relay.utils.files import TempFileManager


def _app(tmp_path):
    return create_app(temp_files_factory=lambda: TempFileManager(tmp_path / "uploads"))


def test_health_200(tmp_path):
    with TestClient(_app(tmp_path)) as c:
        r = c.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["service"] == "photo-relay"


def test_root_banner(tmp_path):
    with TestClient(_app(tmp_path)) as c:
        r = c.get("/")
        assert r.status_code == 200
        assert "running" in r.text


def test_cors_preflight_allows_any_origin(tmp_path):
    with TestClient(_app(tmp_path)) as c:
        r = c.options(
            "/upload",
            headers={"Origin": "https://capture.example.net", "Access-Control-Request-Method": "POST"},
        )
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"


def test_routes_build():
    app = create_app()
    paths = {r.path for r in app.router.routes}
    assert "/upload" in paths
    assert "/health" in paths


def _healthcheck():
    return runpy.run_path(str(Path(__file__).resolve().parents[1] / "scripts" / "healthcheck.py"))


def test_healthcheck_script_against_app(tmp_path):
    probe = _healthcheck()["probe"]
    with TestClient(_app(tmp_path)) as c:
        assert probe("http://testserver/health", client=c) is True
        assert probe("http://testserver/missing", client=c) is False


def test_healthcheck_url_ignores_bind_all_host(monkeypatch):
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "10000")
    monkeypatch.setenv("API_PREFIX", "/api/")
    assert _healthcheck()["health_url"]() == "http://127.0.0.1:10000/api/health"
