from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stackhost.api.app import create_app

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def client():
    return TestClient(create_app(repo_root=str(ROOT)))


@pytest.fixture
def tmp_client(tmp_path):
    def _stack(name, manifest, source=None):
        d = tmp_path / "stacks" / name
        (d / "generated").mkdir(parents=True)
        (d / "stack.yaml").write_text(manifest, encoding="utf-8")
        if source is not None:
            (d / "generated" / "stack.py").write_text(source, encoding="utf-8")

    _stack("ok", "id: ok\n", "def stack():\n    return {'when': object()}\n")
    _stack("shape", "id: shape\n", "def stack():\n    return 3\n")
    _stack("missing", "id: missing\n")
    _stack("raises", "id: raises\n", "def stack():\n    raise ValueError('bad')\n")
    _stack(
        "pinned",
        "id: pinned\nchecksum_sha256: " + "0" * 64 + "\n",
        "def stack():\n    return {}\n",
    )
    return TestClient(create_app(repo_root=str(tmp_path)))


def test_api_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_api_config(client):
    r = client.get("/config")
    assert r.status_code == 200
    data = r.json()
    assert data["adapter"]["entry"] == "stack"
    assert data["definitions"]["registry_dir"] == "stacks"


def test_api_definitions_list(client):
    r = client.get("/definitions")
    assert r.status_code == 200
    ids = [d["id"] for d in r.json()["definitions"]]
    assert "hello-world" in ids


def test_api_evaluate_hello_world(client):
    r = client.post("/definitions/hello-world/evaluate")
    assert r.status_code == 200
    assert r.json() == {
        "id": "hello-world",
        "outputs": {"bucketName": "my-bucket", "region": "us-east-1"},
    }
    m = client.get("/metrics").json()
    assert m["enabled"] is True
    assert m["counters"]["adapter_runs_total{status=ok}"] >= 1


def test_api_metrics_hidden_when_disabled(client, monkeypatch):
    monkeypatch.setenv("STACKOUT__METRICS__ENABLED", "false")
    r = client.get("/metrics")
    assert r.json() == {"enabled": False}


def test_api_evaluate_unknown_id(client):
    r = client.post("/definitions/nope/evaluate")
    assert r.status_code == 404
    assert r.json()["error_type"] == "module-not-found"


def test_api_evaluate_error_mapping(tmp_client):
    ok = tmp_client.post("/definitions/ok/evaluate")
    assert ok.status_code == 200
    assert isinstance(ok.json()["outputs"]["when"], str)

    shape = tmp_client.post("/definitions/shape/evaluate")
    assert shape.status_code == 422
    assert shape.json()["error_type"] == "output-not-mapping"

    missing = tmp_client.post("/definitions/missing/evaluate")
    assert missing.status_code == 404
    assert missing.json()["error_type"] == "module-not-found"

    raises = tmp_client.post("/definitions/raises/evaluate")
    assert raises.status_code == 500
    assert raises.json() == {"error_type": "entry-raised", "message": "bad"}

    pinned = tmp_client.post("/definitions/pinned/evaluate")
    assert pinned.status_code == 500
    assert pinned.json()["error_type"] == "checksum-mismatch"


def test_api_definitions_list_reports_checksum(tmp_client):
    items = {d["id"]: d for d in tmp_client.get("/definitions").json()[
        "definitions"
    ]}
    assert items["pinned"]["checksum_pinned"] is True
    assert items["pinned"]["checksum_error"] == "checksum-mismatch"
    assert items["ok"]["checksum_error"] is None
