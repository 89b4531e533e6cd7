# =============================================
# File: cacheserver/utils/slog.py
# Purpose: Structured (JSON) events for cache operations and HTTP requests
# =============================================
from __future__ import annotations
import json
import logging
import os
import uuid
from typing import Any, Dict, Optional

_LOGGER_NAME = "cacheserver"
_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_logger = logging.getLogger(_LOGGER_NAME)
if not _logger.handlers:
    _logger.setLevel(getattr(logging, _LEVEL, logging.INFO))
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
    _logger.propagate = True  # allow pytest caplog to capture

def new_request_id() -> str:
    return uuid.uuid4().hex

def _emit(event: str, fields: Dict[str, Any], level: int = logging.INFO) -> None:
    rec: Dict[str, Any] = {"event": event}
    rec.update(fields)
    _logger.log(level, json.dumps(rec, ensure_ascii=False, default=str))

def log_event(event: str, **fields: Any) -> None:
    _emit(event, fields)


# --------- Cache operations ---------
# Each helper returns the fields it logged so routers can merge them
# into the request's log context.

def cache_lookup(key: str, hit: bool, request_id: Optional[str] = None) -> Dict[str, Any]:
    fields = {"key": key, "cache_hit": hit}
    _emit("cache.hit" if hit else "cache.miss", {**fields, "request_id": request_id}, logging.DEBUG)
    return fields

def cache_store(key: str, ttl_seconds: int, request_id: Optional[str] = None) -> Dict[str, Any]:
    fields = {"key": key, "ttl_seconds": ttl_seconds}
    _emit("cache.store", {**fields, "request_id": request_id}, logging.DEBUG)
    return fields

def cache_cleared(dropped: int, request_id: Optional[str] = None) -> Dict[str, Any]:
    fields = {"cleared": dropped}
    _emit("cache.clear", {**fields, "request_id": request_id})
    return fields

def cache_snapshot(live: int, swept: int, request_id: Optional[str] = None) -> Dict[str, Any]:
    """`swept` is how many expired entries the scan removed."""
    fields = {"entries": live, "swept": swept}
    _emit("cache.snapshot", {**fields, "request_id": request_id}, logging.INFO if swept else logging.DEBUG)
    return fields


# --------- Requests ---------

def finalize_request_log(
    request_id: str,
    method: str,
    path: str,
    status: int,
    latency_ms: int,
    client_ip: str | None,
    ctx: Dict[str, Any] | None = None,
) -> None:
    payload: Dict[str, Any] = {
        "request_id": request_id,
        "method": method,
        "path": path,
        "status": status,
        "latency_ms": latency_ms,
        "client_ip": client_ip or "",
    }
    if ctx:
        payload.update(ctx)
    _emit("request.completed", payload, logging.WARNING if status >= 500 else logging.INFO)
