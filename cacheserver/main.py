# =============================================
# File: cacheserver/main.py
# Purpose: FastAPI app factory (cache instance, middleware, routers)
# Usage:
#   uvicorn --factory cacheserver.main:create_app --port 3000
# =============================================
from __future__ import annotations

import os
import time
from typing import Optional

from fastapi import FastAPI, Request

from cacheserver.routers import cache as cache_router
from cacheserver.routers import metrics as metrics_router
from cacheserver.services.lru_cache import LRUCache
from cacheserver.utils import slog
from cacheserver.utils.logging import configure_logging
from cacheserver.utils.metrics import record_request

DEFAULT_CAPACITY = 1000

def capacity_from_env() -> int:
    """Read CACHE_CAPACITY at call time so tests/env overrides take effect."""
    return int(os.getenv("CACHE_CAPACITY", str(DEFAULT_CAPACITY)))


def create_app(capacity: Optional[int] = None) -> FastAPI:
    configure_logging()

    app = FastAPI(title="LRU/TTL Cache Server")
    app.state.cache = LRUCache(capacity=capacity if capacity is not None else capacity_from_env())

    @app.middleware("http")
    async def _logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        req_id = slog.new_request_id()
        request.state.request_id = req_id
        client_ip = request.client.host if request.client else None
        # group per-key paths under their route template (/cache/{key})
        def _route_path() -> str:
            return getattr(request.scope.get("route"), "path", str(request.url.path))

        try:
            response = await call_next(request)
        except Exception as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            ctx = getattr(request.state, "log_context", {})
            slog.log_event(
                "request.error",
                request_id=req_id,
                path=str(request.url.path),
                method=request.method,
                latency_ms=latency_ms,
                client_ip=client_ip,
                error=str(e),
                **(ctx or {}),
            )
            record_request(method=request.method, path=_route_path(), status=500, latency_ms=latency_ms)
            raise
        latency_ms = int((time.perf_counter() - start) * 1000)
        ctx = getattr(request.state, "log_context", {}) or {}
        slog.finalize_request_log(
            request_id=req_id,
            method=request.method,
            path=str(request.url.path),
            status=response.status_code,
            latency_ms=latency_ms,
            client_ip=client_ip,
            ctx=ctx,
        )
        record_request(
            method=request.method,
            path=_route_path(),
            status=response.status_code,
            latency_ms=latency_ms,
        )
        response.headers["X-Request-ID"] = req_id
        return response

    @app.get("/health")
    def health(request: Request):
        cache = request.app.state.cache
        return {"status": "ok", "capacity": cache.capacity, "size": cache.size()}

    app.include_router(cache_router.router)
    app.include_router(metrics_router.router)
    return app
