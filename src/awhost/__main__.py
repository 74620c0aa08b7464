"""Entry point for hosting an app from the command line (python -m awhost)."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import config
from .config.settings import HostSettings
from .config.setup import setup_logging
from .loader import load_app

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awhost",
        description="Run an awhost App until it finishes or is interrupted",
    )

    parser.add_argument(
        "target",
        metavar="TARGET",
        help="App to run: 'package.module:app', 'path/to/file.py:app' or '...:factory()'"
    )

    parser.add_argument(
        "-c", "--config-path",
        type=Path,
        default=None,
        help="Path to a configuration file (YAML/JSON) consulted after the environment"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Verbosity level: -v (INFO), -vv (DEBUG)"
    )

    return parser


def verbosity_level(verbose: int, default: str = "WARNING") -> int:
    """Map a ``-v`` count to a logging level; zero keeps the configured default."""
    level_map = {
        1: logging.INFO,
        2: logging.DEBUG
    }
    if verbose <= 0:
        return logging.getLevelName(default)
    return level_map.get(min(verbose, 2), logging.DEBUG)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = create_parser().parse_args(argv)

    overrides = {}
    if args.config_path is not None:
        overrides["config_path"] = args.config_path

    try:
        host_settings = HostSettings(**overrides)
        setup_logging(level=verbosity_level(args.verbose, host_settings.log_level))
        config.set_provider(host_settings.build_provider())

        app = load_app(args.target)
        app.run(ready_timeout=host_settings.ready_timeout)
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception:
        logger.exception("App failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
