# =============================================
# File: tests/test_serve_cli.py
# Purpose: --capacity flag vs CACHE_CAPACITY resolution in the serve CLI
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import pytest

from cacheserver.cli import serve

def test_flag_overrides_invalid_env(monkeypatch):
    monkeypatch.setenv("CACHE_CAPACITY", "0")
    assert serve.resolve_capacity(5) == 5
    monkeypatch.setenv("CACHE_CAPACITY", "lots")
    assert serve.resolve_capacity(5) == 5

def test_env_used_without_flag(monkeypatch):
    monkeypatch.setenv("CACHE_CAPACITY", "42")
    assert serve.resolve_capacity(None) == 42

def test_default_capacity(monkeypatch):
    monkeypatch.delenv("CACHE_CAPACITY", raising=False)
    assert serve.resolve_capacity(None) == 1000

def test_main_runs_uvicorn_with_flag_capacity(monkeypatch):
    monkeypatch.setenv("CACHE_CAPACITY", "0")
    calls = {}

    def _fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port)

    monkeypatch.setattr(serve.uvicorn, "run", _fake_run)
    serve.main(["--capacity", "5", "--port", "3001"])

    assert calls["port"] == 3001
    assert calls["app"].state.cache.capacity == 5

def test_main_exits_on_bad_capacity(monkeypatch, capsys):
    monkeypatch.setenv("CACHE_CAPACITY", "0")
    monkeypatch.setattr(serve.uvicorn, "run", lambda *a, **k: pytest.fail("server should not start"))
    with pytest.raises(SystemExit) as exc:
        serve.main([])
    assert exc.value.code == 2
    assert "invalid capacity" in capsys.readouterr().err
