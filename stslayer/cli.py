#!/usr/bin/env python3
"""
Status Slayer CLI

Configurable status command for Sway using the swaybar protocol.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import default_config_path, load_config
from .engine import Engine
from .errors import StslayerError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stslayer",
        description="Status Slayer: configurable status command for Sway using the swaybar protocol"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=default_config_path(),
        help="Configuration file (default: %(default)s)"
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output (for debugging)"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write logs to this file instead of stderr"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("STSLAYER_LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: %(default)s)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(level: str, log_file: Optional[Path] = None) -> None:
    """Configure logging. stdout is reserved for the status protocol."""
    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])


def run(argv: Optional[List[str]] = None) -> int:
    """Run Status Slayer.

    Returns:
        Exit code (0 = success, non-zero = error)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = load_config(args.config)
        engine = Engine(config, pretty=args.pretty)
        asyncio.run(engine.run())
        if engine.output_closed:
            # Unflushed output would fail again at interpreter exit
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, sys.stdout.fileno())
        return 0
    except StslayerError as e:
        logger.error(f"Fatal error: {e.to_dict()}")
        print(f"stslayer: error: {e.message}", file=sys.stderr)
        if e.suggestion:
            print(f"hint: {e.suggestion}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
