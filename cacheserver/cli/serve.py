# =============================================
# File: cacheserver/cli/serve.py
# Purpose: CLI entrypoint to run the cache server under uvicorn.
# Usage:
#   poetry run python -m cacheserver.cli.serve --port 3000 --capacity 1000
# =============================================
from __future__ import annotations
import argparse
import sys

import uvicorn

from cacheserver.main import DEFAULT_CAPACITY, capacity_from_env, create_app

def resolve_capacity(flag: int | None) -> int:
    """--capacity wins over CACHE_CAPACITY; raises ValueError when the result is unusable."""
    capacity = flag if flag is not None else capacity_from_env()
    if capacity < 1:
        raise ValueError("capacity must be >= 1")
    return capacity

def main(argv=None):
    ap = argparse.ArgumentParser(description="Serve the in-memory LRU/TTL cache over HTTP.")
    ap.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    ap.add_argument("--port", type=int, default=3000, help="Port (default: 3000)")
    ap.add_argument(
        "--capacity",
        type=int,
        default=None,
        help=f"Max live entries (default: $CACHE_CAPACITY or {DEFAULT_CAPACITY})",
    )
    ap.add_argument("--log-level", default="info", help="uvicorn log level (default: info)")
    args = ap.parse_args(argv)

    try:
        capacity = resolve_capacity(args.capacity)
    except ValueError as e:
        print(f"[ERROR] invalid capacity: {e}", file=sys.stderr)
        sys.exit(2)

    uvicorn.run(create_app(capacity=capacity), host=args.host, port=args.port, log_level=args.log_level)

if __name__ == "__main__":
    main()
