#!/usr/bin/env python3
"""
Arena API -- virtual space backend server.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG          Set to true for local development (auto-generates SECRET_KEY).
  PORT / HOST    Bind address; the flags below override them.
  DATABASE_URL   SQLAlchemy URL, default sqlite:///arena.db
"""

import argparse
import sys

import uvicorn
from pydantic import ValidationError

from core.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the Arena API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", help="Bind address (default: HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: PORT or 3000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"  [!] Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    host = args.host or settings.host
    port = args.port or settings.port
    print(f"  Arena API listening on http://{host}:{port}/api/v1")
    uvicorn.run("asgi:app", host=host, port=port, reload=args.reload)


if __name__ == "__main__":
    main()
