"""Command-line interface for the authgate service."""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from authgate.config import Settings, load_settings
from authgate.store import CredentialStore, build_store

logger = logging.getLogger("authgate.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file (default: AUTHGATE_CONFIG)",
    )

    parser = argparse.ArgumentParser(description="authgate registration and sign-in service")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", config=None)

    subparsers.add_parser("init-db", parents=[common], help="Create the credential table and exit")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port (default: PORT or 3000)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_store(settings: Settings) -> CredentialStore:
    store = build_store(settings)
    store.initialize()
    logger.info("Credential store ready (%s backend)", settings.store_backend)
    return store


def _serve(*, settings: Settings, store: CredentialStore) -> None:
    from authgate.service import create_app
    import uvicorn

    logger.info("Starting authgate on http://%s:%s", settings.host, settings.port)

    app = create_app(settings=settings, store=store, initialize_store=False)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = load_settings(args.config)

    if args.command == "serve":
        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        settings = replace(settings, **overrides)
        store = _initialise_store(settings)
        _serve(settings=settings, store=store)
    elif args.command == "init-db":
        _initialise_store(settings)
        print("Credential store initialisation complete.")


if __name__ == "__main__":
    main()
