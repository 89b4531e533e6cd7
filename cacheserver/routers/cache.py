# =============================================
# File: cacheserver/routers/cache.py
# Purpose: HTTP surface for the LRU/TTL cache
# =============================================
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from cacheserver.services.lru_cache import MAX_TTL_SECONDS, LRUCache
from cacheserver.utils import slog

router = APIRouter(tags=["cache"])


# --------- Schemas ---------

class StoreRequest(BaseModel):
    """
    Body of POST /cache/{key}.
    - value: any JSON value, stored as-is.
    - expiration: time-to-live in whole seconds (0 = never observable).
    """
    value: Any = None
    expiration: int = Field(0, ge=0, le=MAX_TTL_SECONDS)

class ValueResponse(BaseModel):
    value: Any

class StatusResponse(BaseModel):
    status: str = "ok"

class CacheEntryResponse(BaseModel):
    key: str
    value: Any
    expiration: datetime


def get_cache(request: Request) -> LRUCache[Any]:
    return request.app.state.cache

def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)

def _set_log_context(request: Request, fields: Dict[str, Any]) -> None:
    ctx = getattr(request.state, "log_context", None) or {}
    ctx.update(fields)
    request.state.log_context = ctx


# --------- Routes ---------

@router.get("/cache/{key}", response_model=ValueResponse)
def get_value(key: str, request: Request, cache: LRUCache[Any] = Depends(get_cache)) -> ValueResponse:
    value, found = cache.lookup(key)
    _set_log_context(request, slog.cache_lookup(key, found, _request_id(request)))
    if not found:
        raise HTTPException(status_code=404, detail="key not found")
    return ValueResponse(value=value)

@router.post("/cache/{key}", response_model=StatusResponse)
def store_value(
    key: str,
    req: StoreRequest,
    request: Request,
    cache: LRUCache[Any] = Depends(get_cache),
) -> StatusResponse:
    cache.store(key, req.value, req.expiration)
    _set_log_context(request, slog.cache_store(key, req.expiration, _request_id(request)))
    return StatusResponse()

@router.delete("/cache", response_model=StatusResponse)
def clear_cache(request: Request, cache: LRUCache[Any] = Depends(get_cache)) -> StatusResponse:
    dropped = cache.clear()
    _set_log_context(request, slog.cache_cleared(dropped, _request_id(request)))
    return StatusResponse()

@router.get("/cache-state", response_model=List[CacheEntryResponse])
def cache_state(request: Request, cache: LRUCache[Any] = Depends(get_cache)) -> List[CacheEntryResponse]:
    """Live entries with absolute UTC expiration; expired ones are swept as a side effect."""
    entries, swept = cache.sweep()
    _set_log_context(request, slog.cache_snapshot(len(entries), swept, _request_id(request)))
    return [
        CacheEntryResponse(
            key=e.key,
            value=e.value,
            expiration=datetime.fromtimestamp(e.expiration, tz=timezone.utc),
        )
        for e in entries
    ]
