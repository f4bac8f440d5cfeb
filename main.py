#!/usr/bin/env python3
"""
Q&A service -- questions, answers, accounts and encrypted session tokens.

Usage:
  python main.py
  python main.py --log-level info
  python main.py --database-url sqlite:////var/lib/qa/qaservice.db
  python main.py --host 0.0.0.0 --port 8080

Environment variables:
  TOKEN_KEY          Required outside DEBUG mode. Exactly 32 bytes; the
                     secret key for session tokens.
  BAD_WORDS_API_KEY  Required outside DEBUG mode. APILayer bad_words key.
  PORT               Default listen port when --port is not given.
  DEBUG              "true" generates a throwaway TOKEN_KEY for local runs.

Command-line values are exported into the environment before the app is
imported, so core.config.get_settings() stays the only reader of settings.
"""

import argparse
import os

import uvicorn

_DEFAULT_PORT = 3031


def _default_port() -> int:
    raw = os.environ.get("PORT", "")
    return int(raw) if raw.isdigit() else _DEFAULT_PORT


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="qa-service",
        description="Q&A web service API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --log-level info
  TOKEN_KEY=... BAD_WORDS_API_KEY=... python main.py --port 8080
  DEBUG=true python main.py
        """,
    )
    parser.add_argument(
        "-l",
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Which events to log (default: warning)",
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: SQLite file beside the package)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help=f"Port to bind (default: $PORT or {_DEFAULT_PORT})")
    args = parser.parse_args()

    os.environ["LOG_LEVEL"] = args.log_level
    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    port = args.port if args.port is not None else _default_port()
    uvicorn.run("asgi:app", host=args.host, port=port, log_level=args.log_level)


if __name__ == "__main__":
    main()
