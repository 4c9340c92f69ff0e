from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Optional

from fastconnect.core.config_manager import FastConnectConfig, load_fast_connect_config
from fastconnect.core.logging_config import configure_logging
from fastconnect.core.paths import CONFIG_PATH


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    default_log_level: str = "warning",
    include_state_file: bool = True,
) -> None:
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=default_log_level,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs to (rotated)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Configuration file with fast_connect / save_state_file keys (default: {CONFIG_PATH})",
    )

    if include_state_file:
        parser.add_argument(
            "--state-file",
            dest="state_file",
            type=str,
            default=None,
            help="Saved-state file, overrides save_state_file from the configuration",
        )


def non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must not be negative")
    return parsed


def setup_cli_logging(args: Any) -> None:
    configure_logging(
        args.log_level,
        force=True,
        console=True,
        log_file=args.log_file,
    )


def resolve_config(args: Any, *, force_fast_connect: Optional[bool] = None) -> FastConnectConfig:
    """Load the configuration file and apply command-line overrides."""
    config = load_fast_connect_config(args.config)
    if getattr(args, "state_file", None):
        config.save_state_file = args.state_file
    if force_fast_connect is not None:
        config.fast_connect_supported = force_fast_connect
    return config


__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "non_negative_int",
    "setup_cli_logging",
    "resolve_config",
]
