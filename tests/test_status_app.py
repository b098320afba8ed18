from fastapi.testclient import TestClient

from flightsurety.core.models import OracleIdentity
from flightsurety.oracles.registry import IndexRegistry
from flightsurety.server.app import create_app


def test_status_endpoint():
    client = TestClient(create_app())
    r = client.get("/status")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    r2 = client.get("/api")
    assert r2.status_code == 200
    assert "message" in r2.json()


def test_oracles_endpoint_lists_registry():
    registry = IndexRegistry(10)
    registry.assign_all(OracleIdentity("0xa"), [1, 4, 7])
    registry.freeze()
    client = TestClient(create_app(registry))

    body = client.get("/oracles").json()

    assert body["frozen"] is True
    assert body["index_space"] == 10
    assert body["oracles"] == [{"address": "0xa", "indexes": [1, 4, 7]}]
    assert body["buckets"]["4"] == ["0xa"]
    assert body["buckets"]["5"] == []
