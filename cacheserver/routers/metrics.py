# =============================================
# File: cacheserver/routers/metrics.py
# Purpose: Expose internal metrics + cache stats as JSON
# =============================================
from __future__ import annotations
from fastapi import APIRouter, Request
from cacheserver.utils.metrics import snapshot

router = APIRouter(tags=["metrics"])

@router.get("/metrics")
def get_metrics(request: Request):
    """Return in-process metrics (JSON)."""
    return snapshot(cache_stats=request.app.state.cache.stats())
