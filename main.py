"""Command-line interface for the todo service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Sequence

from todo_service.config import Settings, load_settings, resolve_config_path

logger = logging.getLogger("todo_service.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Todo service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP todo service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings or 0.0.0.0)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: settings or 3000)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (default: TODO_CONFIG or config/settings.yaml)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(config: str | None) -> Settings:
    config_path = resolve_config_path(config or os.getenv("TODO_CONFIG"))
    settings = load_settings(config_path)
    if config_path.exists():
        logger.info("Loaded settings from %s", config_path)
    return settings


def _serve(*, settings: Settings, host: str | None, port: int | None) -> None:
    from todo_service.api import create_app
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting todo API on http://%s:%s", bind_host, bind_port)

    app = create_app(settings=settings)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level="info")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        try:
            settings = _load_settings(args.config)
        except (OSError, ValueError) as exc:
            raise SystemExit(f"Invalid configuration: {exc}") from exc
        _serve(settings=settings, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
