"""CLI entrypoint for travelchat."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata
from pathlib import Path
from typing import Any

from .app import TravelChatApp
from .config import ensure_config_dir, load_config
from .exceptions import ConfigValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="travelchat",
        description="travelchat - Terminal client for the Vietnam travel assistant",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--endpoint",
        default=None,
        help="Chat endpoint URL (overrides backend.endpoint)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to an alternative config.toml",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Handle CLI flags, load configuration, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("travelchat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"travelchat {version}")
        return

    overrides: dict[str, Any] = {}
    if args.endpoint:
        overrides["backend"] = {"endpoint": args.endpoint}

    if args.config is None:
        ensure_config_dir()
    try:
        config = load_config(config_path=args.config, overrides=overrides)
    except ConfigValidationError as exc:
        parser.error(str(exc))
    app = TravelChatApp(config=config)
    app.run()


if __name__ == "__main__":
    main()
