# =============================================
# File: cacheserver/utils/metrics.py
# Purpose: In-process counters & histograms for /metrics
# =============================================
from __future__ import annotations
from typing import Dict, Any, List, Optional
import threading
import time

_lock = threading.Lock()

# Counters
_counters: Dict[str, int] = {
    "requests_total": 0,
    "errors_total": 0,
}

# Per-status counts, e.g. {"200": 10, "404": 2}
_status_counts: Dict[str, int] = {}

# Fixed-bucket histogram for latency (milliseconds)
# Buckets: <=1,5,10,50,100,500,1000, +inf
_latency_buckets: List[int] = [1, 5, 10, 50, 100, 500, 1000]
_latency_counts: List[int] = [0 for _ in _latency_buckets] + [0]  # last is +inf (overflow)

# Per-endpoint latency samples (bounded) and counters for avg/p95
_MAX_SAMPLES: int = 1000
_endpoint_latency: Dict[str, List[float]] = {}   # key: "METHOD /path" -> [ms]
_endpoint_counts: Dict[str, int] = {}            # key: "METHOD /path" -> count

def _avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0

def _p95(values: List[float]) -> float:
    if not values:
        return 0.0
    xs = sorted(values)
    idx = int(0.95 * (len(xs) - 1))
    return xs[idx]

def _observe_latency_ms(ms: int) -> None:
    idx = len(_latency_buckets)  # default overflow
    for i, thr in enumerate(_latency_buckets):
        if ms <= thr:
            idx = i
            break
    _latency_counts[idx] += 1

def record_request(method: str, path: str, status: int, latency_ms: float) -> None:
    key = f"{method.upper()} {path}"
    with _lock:
        _counters["requests_total"] += 1
        if status >= 500:
            _counters["errors_total"] += 1
        code = str(status)
        _status_counts[code] = _status_counts.get(code, 0) + 1
        _observe_latency_ms(int(latency_ms))

        _endpoint_counts[key] = _endpoint_counts.get(key, 0) + 1
        buf = _endpoint_latency.setdefault(key, [])
        buf.append(float(latency_ms))
        # bound buffer
        if len(buf) > _MAX_SAMPLES:
            del buf[: len(buf) - _MAX_SAMPLES]

def snapshot(cache_stats: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    with _lock:
        perf: Dict[str, Dict[str, float]] = {}
        for key, buf in _endpoint_latency.items():
            perf[key] = {
                "count": float(_endpoint_counts.get(key, 0)),
                "avg_latency_ms": _avg(buf),
                "p95_latency_ms": _p95(buf),
            }
        return {
            "counters": dict(_counters),
            "status": dict(_status_counts),
            "cache": dict(cache_stats or {}),
            "latency_ms": {
                "buckets": list(_latency_buckets) + ["+Inf"],
                "counts": list(_latency_counts),
            },
            "performance": {
                "endpoints": perf,
                "generated_at": time.time(),
            },
        }

def reset() -> None:
    with _lock:
        for k in _counters:
            _counters[k] = 0
        _status_counts.clear()
        _endpoint_latency.clear()
        _endpoint_counts.clear()
        for i in range(len(_latency_counts)):
            _latency_counts[i] = 0
