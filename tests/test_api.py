from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from rollout import main
from rollout.main import create_app
from rollout.services.feature_manager import FeatureManager

from conftest import FixedBucketing, RecordingStorage


@pytest.fixture
def api_storage():
    return RecordingStorage()


@pytest.fixture
def client(api_storage):
    bucketing = FixedBucketing({"lucky": Decimal(5)})
    return TestClient(create_app(FeatureManager(api_storage, bucketing)))


def _active(client, feature, **params):
    resp = client.get(f"/features/{feature}/active", params=params)
    assert resp.status_code == 200
    return resp.json()["active"]


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_rollout_ui(client):
    resp = client.get("/internal/rollout-ui")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Rollout" in resp.text


def test_percentage_route_clamps(client, api_storage):
    resp = client.put("/features/x/percentage", json={"percentage": 150})
    assert resp.status_code == 204
    assert api_storage._features["x"].percentage == Decimal(100)
    assert _active(client, "x") is True


def test_percentage_route_validates_body(client):
    resp = client.put("/features/x/percentage", json={"percentage": "lots"})
    assert resp.status_code == 422


def test_group_routes(client):
    client.put("/features/checkout-v2/percentage", json={"percentage": 25})
    assert client.post("/features/checkout-v2/groups", json={"items": ["beta"]}).status_code == 204
    assert _active(client, "checkout-v2", group="beta") is True
    assert _active(client, "checkout-v2", group="other") is False
    assert _active(client, "checkout-v2", user="lucky") is True

    resp = client.request("DELETE", "/features/checkout-v2/groups", json={"items": ["beta"]})
    assert resp.status_code == 204
    assert _active(client, "checkout-v2", group="beta") is False


def test_user_routes(client):
    assert client.post("/features/x/users", json={"items": ["u1"]}).status_code == 204
    assert _active(client, "x", user="u1") is True
    assert client.request("DELETE", "/features/x/users", json={"items": ["u1"]}).status_code == 204
    assert _active(client, "x", user="u1") is False


def test_remove_on_missing_feature_is_silent(client, api_storage):
    resp = client.request("DELETE", "/features/nonexistent-feature/users", json={"items": ["a"]})
    assert resp.status_code == 204
    assert api_storage.writes == 0


def test_unknown_feature_is_inactive(client):
    assert _active(client, "missing", user="u1") is False


def test_unimplemented_routes_return_501(client):
    resp = client.get("/features")
    assert resp.status_code == 501
    assert resp.json() == {"detail": "not implemented"}
    assert client.post("/features/x/deactivate").status_code == 501


def test_metrics_endpoint(client):
    _active(client, "metrics-check")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert 'feature_evaluations_total{feature="metrics-check",result="inactive"}' in resp.text
    assert 'route="/features/{name}/active"' in resp.text
    assert 'route="/metrics"' not in resp.text


def test_app_closes_store_it_built_on_shutdown(monkeypatch):
    storage = RecordingStorage()
    storage.closed = False

    async def close():
        storage.closed = True

    storage.close = close
    monkeypatch.setattr(main, "build_feature_storage", lambda: storage)

    with TestClient(main.create_app()) as client:
        assert client.post("/features/x/users", json={"items": ["u1"]}).status_code == 204
        assert storage.closed is False
    assert storage.closed is True
    assert storage.writes == 1
