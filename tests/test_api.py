"""Tests for the REST surface, using FastAPI's TestClient with a fake device."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import PERMISSION_DIALOG, FakeAdb, FakeRunner
from flutter_commander import __version__
from flutter_commander.api import create_app
from flutter_commander.api.routes import get_commander
from flutter_commander.commander import FlutterCommander
from flutter_commander.core.config import config
from flutter_commander.core.exceptions import ADBError


@pytest.fixture
def adb():
    return FakeAdb()


@pytest.fixture
def client(adb):
    commander = FlutterCommander(adb=adb, runner_factory=FakeRunner)
    app = create_app()
    app.dependency_overrides[get_commander] = lambda: commander
    return TestClient(app)


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "flutter-commander API", "version": __version__}


def test_session_status_when_idle(client):
    response = client.get("/api/v1/session")
    assert response.status_code == 200
    assert response.json() == {"running": False, "device_id": None, "endpoint": None}


def test_stop_without_session(client):
    response = client.post("/api/v1/session/stop")
    assert response.json() == {"message": "No active session"}


def test_hot_reload_without_session_is_conflict(client):
    response = client.post("/api/v1/session/hot-reload", json={"reason": "styling"})
    assert response.status_code == 409
    assert response.json()["detail"] == "No active dev session"


def test_tree_from_accessibility_dump(client):
    response = client.get("/api/v1/inspection/tree")
    assert response.status_code == 200
    tree = response.json()
    assert tree["type"] == "FrameLayout"
    assert tree["children"][0]["text"] == "Native Button"


def test_tree_unavailable(client, adb):
    adb.dump_error = ADBError("device offline")
    response = client.get("/api/v1/inspection/tree")
    assert response.status_code == 503


def test_find(client):
    response = client.post("/api/v1/inspection/find", json={"criteria": "Native", "timeout_ms": 500})
    assert response.status_code == 200
    assert response.json()["rect"] == {"x": 100, "y": 100, "width": 200, "height": 100}


def test_find_miss_is_not_found(client):
    response = client.post("/api/v1/inspection/find", json={"criteria": "Checkout", "timeout_ms": 50})
    assert response.status_code == 404
    assert response.json()["detail"] == "Element not found within timeout"


def test_tap_requires_target(client):
    response = client.post("/api/v1/interaction/tap", json={})
    assert response.status_code == 400


def test_tap_coordinates(client, adb):
    response = client.post("/api/v1/interaction/tap", json={"x": 5, "y": 7})
    assert response.json() == {"message": "Tapped at 5,7"}
    assert adb.logs == ["tap: 5,7"]


def test_scroll_rejects_unknown_direction(client):
    response = client.post("/api/v1/interaction/scroll", json={"direction": "sideways"})
    assert response.status_code == 422


def test_system_dialog(client, adb):
    adb.window_dump = PERMISSION_DIALOG
    response = client.post("/api/v1/interaction/system-dialog", json={"action": "deny"})
    assert response.status_code == 200
    assert response.json() == {"message": "Tapped 'Deny' at 350,1075"}


def test_system_dialog_without_buttons(client):
    response = client.post("/api/v1/interaction/system-dialog", json={"action": "accept"})
    assert response.status_code == 404


def test_screenshot(client, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "capture_dir", str(tmp_path))
    response = client.post("/api/v1/inspection/screenshot")
    assert response.status_code == 200
    path = response.json()["screenshot_path"]
    assert path.startswith(str(tmp_path))
    assert path.endswith(".png")


def test_visual_state_analysis(client, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "capture_dir", str(tmp_path))
    response = client.get("/api/v1/inspection/analysis")
    assert response.status_code == 200
    lines = response.json()["message"].splitlines()
    assert lines[0] == "Visual State Analysis:"
    assert lines[1].startswith(f"Screenshot saved at: {tmp_path}")
    assert lines[2] == "Semantic Tree: Root: FrameLayout (Children: 1)"


def test_screenshot_failure_is_bad_gateway(client, adb, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "capture_dir", str(tmp_path))
    adb.dump_error = ADBError("device offline")
    response = client.post("/api/v1/inspection/screenshot")
    assert response.status_code == 502
    assert response.json()["detail"] == "screencap failed"


def test_unmapped_errors_use_the_shared_handler(client, monkeypatch):
    commander = client.app.dependency_overrides[get_commander]()

    async def broken_stop():
        raise ADBError("adb server died")

    monkeypatch.setattr(commander.session, "stop", broken_stop)
    response = client.post("/api/v1/session/stop")
    assert response.status_code == 502
    assert response.json() == {"detail": "adb server died"}
