"""
Start the Operation Authorization API with uvicorn.

Defaults for host, port and log level come from the service settings
(API_HOST, API_PORT, LOG_LEVEL); flags override them.

Usage:
    python run.py
    python run.py --reload              # Development mode with auto-reload
    python run.py --port 8080 --workers 4
"""
import argparse

import uvicorn

from opauth.config.settings import settings

APP = "opauth.main:app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Operation Authorization API server")
    parser.add_argument("--host", default=settings.api_host, help=f"Bind address (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=settings.api_port, help=f"Bind port (default: {settings.api_port})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; ignored with --reload. Each worker runs its own expired-token sweeper"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level.lower(),
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    workers = 1 if args.reload else args.workers

    print(
        f"Starting Operation Authorization API on {args.host}:{args.port} "
        f"(env={settings.environment}, workers={workers}, reload={args.reload})"
    )

    uvicorn.run(
        APP,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
