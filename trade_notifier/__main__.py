"""CLI entrypoint for trade-notifier."""

from __future__ import annotations

import argparse
from importlib import metadata
from pathlib import Path
import sys
from typing import Sequence

from .bootstrap import initialize_notification_system
from .config import create_default_config_file, discover_config_path, load_config
from .exceptions import NotifierError
from .logging_utils import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trade-notifier", description="Trading event chat notifier"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to notification.toml (searched under configs/ by default)",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a default config file and exit",
    )
    parser.add_argument(
        "--test-message",
        metavar="TEXT",
        default=None,
        help="Send one message to every configured messenger and exit",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Handle CLI flags; returns the process exit status."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("trade-notifier")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"trade-notifier {version}")
        return 0

    config_path = args.config or discover_config_path()

    if args.init_config:
        if config_path.exists():
            print(f"Config already exists at {config_path}", file=sys.stderr)
            return 1
        create_default_config_file(config_path)
        print(f"Default notification config created at {config_path}")
        print("Please update the config file with your messenger credentials")
        return 0

    configure_logging(load_config(config_path).logging.model_dump())

    try:
        service = initialize_notification_system(config_path=config_path)
    except NotifierError as exc:
        print(f"trade-notifier: {exc}", file=sys.stderr)
        return 1

    if args.test_message:
        service.send_notification(args.test_message)
    service.close(timeout=30.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
