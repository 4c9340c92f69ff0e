"""
Saved-state file reader and writer.

File layout, one block per record, oldest first::

    <listener friendly name>
    <talker entity ID>
    <controller entity ID>
    <blank line>

The configured path may carry a suffix after a comma
(``/var/lib/avb/save.ini,override``). Only the part before the first comma
names the file; the suffix is split off and otherwise ignored.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from fastconnect.core.logging_utils import get_module_logger

from .entity_id import format_entity_id, parse_entity_id
from .errors import LoadError, ParseError, PersistError
from .models import MAX_FRIENDLY_NAME_LENGTH, MAX_SAVED_STATES, SavedState

logger = get_module_logger("SavedStateFile")

PathLike = Union[str, "os.PathLike[str]"]


def split_state_path(path: PathLike) -> Tuple[Path, Optional[str]]:
    """Split ``file[,override]`` into the file path and the override suffix."""
    text = os.fspath(path)
    file_part, sep, override = text.partition(",")
    return Path(file_part), (override if sep else None)


def _next_friendly_name(lines: Iterator[str]) -> Optional[str]:
    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if line:
            return line[:MAX_FRIENDLY_NAME_LENGTH]
    return None


def _read_entity_id(lines: Iterator[str], role: str, source: str) -> bytes:
    raw_line = next(lines, None)
    if raw_line is None:
        raise LoadError(f"Unexpected end of file reading {role} entity ID from: {source}", source)
    try:
        return parse_entity_id(raw_line)
    except ParseError as exc:
        raise LoadError(f"Error getting {role} entity ID from: {source}", source) from exc


def parse_saved_states(
    lines: Iterable[str],
    source: str = "<lines>",
    max_states: int = MAX_SAVED_STATES,
) -> List[SavedState]:
    """Build records from an iterable of text lines.

    Stops quietly at end of input between records and after ``max_states``
    records. Raises LoadError when a record is cut short or an entity ID line
    is malformed.
    """
    records: List[SavedState] = []
    it = iter(lines)

    while len(records) < max_states:
        name = _next_friendly_name(it)
        if name is None:
            break

        talker_entity_id = _read_entity_id(it, "talker", source)
        controller_entity_id = _read_entity_id(it, "controller", source)

        record = SavedState(name, talker_entity_id, controller_entity_id)
        logger.debug("Loaded saved state %d from file: %s", len(records), record)
        records.append(record)

    return records


def load_saved_states(path: PathLike, max_states: int = MAX_SAVED_STATES) -> List[SavedState]:
    """Load saved states from ``path``; a missing file yields an empty list.

    Raises:
        LoadError: The file could not be opened or read, or a record is
            malformed. Records read before the failure are discarded.
    """
    source = os.fspath(path)
    file_path, override = split_state_path(path)
    if override is not None:
        logger.debug("Ignoring override '%s' in saved state path", override)

    try:
        handle = open(file_path, "r", encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No saved state file found at %s", file_path)
        return []
    except OSError as exc:
        raise LoadError(f"Error opening saved state file: {source}", source) from exc

    with handle:
        try:
            records = parse_saved_states(handle, source, max_states)
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Error reading from saved state file: {source}", source) from exc

    logger.info("Extracted %d saved states from %s", len(records), source)
    return records


def serialize_saved_state(record: SavedState) -> str:
    return "%s\n%s\n%s\n\n" % (
        record.friendly_name,
        format_entity_id(record.talker_entity_id),
        format_entity_id(record.controller_entity_id),
    )


def format_saved_states(records: Iterable[SavedState]) -> str:
    return "".join(serialize_saved_state(record) for record in records)


def write_saved_states(path: PathLike, records: Iterable[SavedState]) -> None:
    """Rewrite the saved-state file with ``records``.

    The file is truncated first; a failure part way leaves it partial.

    Raises:
        PersistError: The file could not be opened or written.
    """
    source = os.fspath(path)
    file_path, _ = split_state_path(path)
    count = 0

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as handle:
            for record in records:
                handle.write(serialize_saved_state(record))
                count += 1
    except OSError as exc:
        raise PersistError(f"Error writing to saved state file: {source}", source) from exc

    logger.debug("Saved %d states to %s", count, source)


__all__ = [
    "split_state_path",
    "parse_saved_states",
    "load_saved_states",
    "serialize_saved_state",
    "format_saved_states",
    "write_saved_states",
]
