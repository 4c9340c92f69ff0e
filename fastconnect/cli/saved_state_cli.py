"""Command line access to the fast-connect saved-state file.

Usage:
    python -m fastconnect list
    python -m fastconnect save Room1 00:11:22:33:44:55:66:77 88:99:AA:BB:CC:DD:EE:FF
    python -m fastconnect clear Room1
    python -m fastconnect delete 0
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence, TextIO

from fastconnect.core.logging_utils import get_module_logger
from fastconnect.core.saved_state import ParseError, SavedStateStore, parse_entity_id
from fastconnect.core.saved_state.models import normalize_friendly_name

from .common import add_common_cli_arguments, non_negative_int, resolve_config, setup_cli_logging

logger = get_module_logger("CLI")


def entity_id_arg(value: str) -> bytes:
    try:
        return parse_entity_id(value)
    except ParseError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid entity ID '{value}' (expected XX:XX:XX:XX:XX:XX:XX:XX)"
        ) from exc


def friendly_name_arg(value: str) -> str:
    try:
        return normalize_friendly_name(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fastconnect",
        description="Inspect and edit the fast-connect saved state",
    )
    add_common_cli_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="Show saved connections, oldest first")

    save_parser = subparsers.add_parser("save", help="Save or update a listener connection")
    save_parser.add_argument("name", type=friendly_name_arg, help="Listener friendly name")
    save_parser.add_argument("talker", type=entity_id_arg, help="Talker entity ID")
    save_parser.add_argument("controller", type=entity_id_arg, help="Controller entity ID")
    save_parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Save even if fast_connect is disabled in the configuration",
    )

    clear_parser = subparsers.add_parser("clear", help="Remove the connection of a listener")
    clear_parser.add_argument("name", type=friendly_name_arg, help="Listener friendly name")

    delete_parser = subparsers.add_parser("delete", help="Remove the connection at an index")
    delete_parser.add_argument("index", type=non_negative_int, help="Index shown by 'list'")

    return parser


def _cmd_list(store: SavedStateStore, out: TextIO) -> int:
    if not store.reload():
        return 1
    for index, record in enumerate(store.records):
        out.write(f"{index}\t{record.friendly_name}\t{record.talker_id_text}\t{record.controller_id_text}\n")
    return 0


def _cmd_save(store: SavedStateStore, args: argparse.Namespace) -> int:
    if not store.fast_connect_supported:
        logger.error("Fast connect is disabled; use --force to save anyway")
        return 1
    return 0 if store.upsert(args.name, args.talker, args.controller) else 1


def _cmd_clear(store: SavedStateStore, args: argparse.Namespace) -> int:
    return 0 if store.clear(args.name) else 1


def _cmd_delete(store: SavedStateStore, args: argparse.Namespace) -> int:
    if store.get_at(args.index) is None:
        logger.error("No saved state at index %d", args.index)
        return 1
    return 0 if store.delete_at(args.index) else 1


def main(argv: Optional[Sequence[str]] = None, out: Optional[TextIO] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = out or sys.stdout

    setup_cli_logging(args)

    force = True if getattr(args, "force", False) else None
    config = resolve_config(args, force_fast_connect=force)
    store = SavedStateStore.from_config(config)
    logger.debug("Using saved state file %s", store.path)

    if args.command == "list":
        return _cmd_list(store, out)
    if args.command == "save":
        return _cmd_save(store, args)
    if args.command == "clear":
        return _cmd_clear(store, args)
    if args.command == "delete":
        return _cmd_delete(store, args)

    parser.error(f"Unknown command: {args.command}")
    return 2


__all__ = ["build_parser", "entity_id_arg", "friendly_name_arg", "main"]
