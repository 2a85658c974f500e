import inspect

import pytest
from fastapi.testclient import TestClient

from codelab import api_app
from codelab.business.extension import EXTENSION_ROUTER, get_extension_manager
from codelab.business.loader import ExtensionLoader
from tests.helpers import DEMO_LANG_SOURCE, extension_source


@pytest.fixture
def client(manager):
    api_app.dependency_overrides[get_extension_manager] = lambda: manager
    # no context manager: the lifespan would start the process-wide manager
    yield TestClient(api_app)
    api_app.dependency_overrides.clear()


def test_heartbeat(client):
    assert client.get("/heartbeat").json() == {"status": "ok"}


def test_install_local(client, store):
    response = client.post("/extensions/local", json={"code": DEMO_LANG_SOURCE})
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "demo-lang-plugin"
    assert body["state"] == "active"
    assert body["version"] == "1.0.0"
    assert store.get("demo-lang-plugin") is not None

    listed = client.get("/extensions", params={"active_only": True}).json()
    assert [info["id"] for info in listed] == ["demo-lang-plugin"]

    languages = client.get("/extensions/contributions").json()["languages"]
    assert {"id": "demo-lang", "name": "DemoLang"}.items() <= next(
        language for language in languages if language["id"] == "demo-lang"
    ).items()


def test_install_failure(client):
    response = client.post("/extensions/local", json={"code": extension_source("bad", "raise Exception('boom')")})
    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "ActivationException"

    info = client.get("/extensions/bad").json()
    assert info["state"] == "failed"
    assert "boom" in info["error"]


def test_install_remote_disabled(client, manager):
    manager.loader = ExtensionLoader(allow_remote=False)
    response = client.post("/extensions/remote", json={"url": "https://example.com/ext.py"})
    assert response.status_code == 502
    assert response.json()["detail"]["kind"] == "FetchFailure"


def test_unknown_extension(client):
    assert client.get("/extensions/ghost").status_code == 404
    assert client.put("/extensions/ghost/enabled", json={"enabled": True}).status_code == 404


def test_uninstall(client, store):
    client.post("/extensions/local", json={"code": extension_source("temp")})
    assert client.delete("/extensions/temp").status_code == 204
    assert client.get("/extensions/temp").status_code == 404
    assert store.get("temp") is None


def test_toggle_enabled(client):
    client.post("/extensions/local", json={"code": extension_source("toggle")})
    response = client.put("/extensions/toggle/enabled", json={"enabled": False})
    assert response.status_code == 200
    assert response.json()["enabled"] is False
    assert "installedAt" in response.json()
    assert client.get("/extensions/toggle").status_code == 404


def test_notifications(client):
    client.post("/extensions/local", json={"code": 'name = "anonymous"'})
    notifications = client.get("/extensions/notifications").json()
    assert notifications[-1]["kind"] == "InvalidManifest"
    assert notifications[-1]["severity"] == "error"


def test_routes_run_on_the_event_loop():
    endpoints = {route.name: route.endpoint for route in EXTENSION_ROUTER.routes}
    assert {"uninstall_extension", "set_extension_enabled", "install_local"} <= set(endpoints)
    for name, endpoint in endpoints.items():
        assert inspect.iscoroutinefunction(endpoint), name
    assert inspect.iscoroutinefunction(get_extension_manager)


def test_failure_detail_comes_from_the_install(client, manager):
    notify = manager.notifications.notify

    def notify_then_chatter(*args, **kwargs):
        notification = notify(*args, **kwargs)
        if notification.kind is not None:
            notify("unrelated chatter")
        return notification

    manager.notifications.notify = notify_then_chatter
    response = client.post("/extensions/local", json={"code": 'name = "anonymous"'})

    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "InvalidManifest"
