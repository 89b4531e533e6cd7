# =============================================
# File: tests/test_logging.py
# =============================================
import sys, os, json
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from fastapi.testclient import TestClient

from cacheserver.main import create_app

def _find_json_events(caplog, name: str):
    out = []
    for rec in caplog.records:
        try:
            data = json.loads(rec.message)
        except Exception:
            continue
        if isinstance(data, dict) and data.get("event") == name:
            out.append(data)
    return out

def test_structured_log_on_hit(caplog):
    caplog.set_level("INFO", logger="cacheserver")
    client = TestClient(create_app(capacity=4))
    client.post("/cache/k", json={"value": "v", "expiration": 60})

    r = client.get("/cache/k")
    assert r.status_code == 200
    assert r.headers.get("X-Request-ID")

    evt = _find_json_events(caplog, "request.completed")[-1]
    assert evt["path"] == "/cache/k"
    assert evt["method"] == "GET"
    assert evt["status"] == 200
    assert evt["request_id"] == r.headers["X-Request-ID"]
    assert isinstance(evt["latency_ms"], int)
    assert evt["key"] == "k"
    assert evt["cache_hit"] is True

def test_structured_log_on_miss(caplog):
    caplog.set_level("INFO", logger="cacheserver")
    client = TestClient(create_app(capacity=4))

    r = client.get("/cache/missing")
    assert r.status_code == 404

    evt = _find_json_events(caplog, "request.completed")[-1]
    assert evt["status"] == 404
    assert evt["cache_hit"] is False

def test_store_logs_ttl(caplog):
    caplog.set_level("INFO", logger="cacheserver")
    client = TestClient(create_app(capacity=4))
    client.post("/cache/k", json={"value": "v", "expiration": 30})

    evt = _find_json_events(caplog, "request.completed")[-1]
    assert evt["method"] == "POST"
    assert evt["ttl_seconds"] == 30

def test_cache_events_are_logged(caplog):
    caplog.set_level("DEBUG", logger="cacheserver")
    client = TestClient(create_app(capacity=4))
    client.post("/cache/k", json={"value": "v", "expiration": 60})
    client.post("/cache/gone", json={"value": "v", "expiration": 0})
    r = client.get("/cache/k")
    client.get("/cache/missing")
    client.get("/cache-state")
    client.delete("/cache")

    store = _find_json_events(caplog, "cache.store")
    assert [e["key"] for e in store] == ["k", "gone"]
    assert store[0]["ttl_seconds"] == 60

    hit = _find_json_events(caplog, "cache.hit")[-1]
    assert hit["key"] == "k"
    assert hit["request_id"] == r.headers["X-Request-ID"]
    assert _find_json_events(caplog, "cache.miss")[-1]["key"] == "missing"

    snap = _find_json_events(caplog, "cache.snapshot")[-1]
    assert snap == {**snap, "entries": 1, "swept": 1}
    assert _find_json_events(caplog, "cache.clear")[-1]["cleared"] == 1

def test_server_error_logged(caplog):
    caplog.set_level("INFO", logger="cacheserver")
    app = create_app(capacity=4)

    def _broken_lookup(key):
        raise RuntimeError("boom")

    app.state.cache.lookup = _broken_lookup
    client = TestClient(app, raise_server_exceptions=False)
    assert client.get("/cache/k").status_code == 500

    evt = _find_json_events(caplog, "request.error")[-1]
    assert evt["error"] == "boom"
    assert evt["method"] == "GET"
