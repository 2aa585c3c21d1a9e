#!/usr/bin/env python3
"""
DataMap -- per-user data mapping records behind bearer-token auth.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 3001
  python main.py serve --reload
  python main.py init-db

Environment variables (or .env):
  SECRET_KEY    JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG         Set to true to auto-generate SECRET_KEY for local development.
  DATABASE_URL  SQLAlchemy URL. Defaults to a SQLite file next to the code.
"""

import argparse
import sys

from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    # Fail fast on bad configuration before uvicorn starts importing the app.
    get_settings()
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _init_db(args: argparse.Namespace) -> int:
    from context import AppContext

    ctx = AppContext.from_settings(get_settings())
    ctx.close()
    print(f"  Schema ready at {ctx.engine.url.render_as_string(hide_password=True)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="datamap",
        description="DataMap API server.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API under uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3001)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    init_db = sub.add_parser("init-db", help="Create database tables and exit")
    init_db.set_defaults(func=_init_db)

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ValueError as e:
        # Settings validation (e.g. missing SECRET_KEY) surfaces as ValueError.
        print(f"  [!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
