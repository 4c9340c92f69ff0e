"""
Entity ID codec.

Entity IDs are 8-byte identifiers. In the saved-state file they are written
as eight two-digit hex groups joined by colons::

    AA:BB:CC:DD:EE:FF:00:11

Parsing is strict: every digit position must hold a hex digit (either case),
the first seven groups must be followed by ``:`` and anything after the
eighth group may only be whitespace (usually the line terminator).
"""

from __future__ import annotations

from typing import Iterable, Union

from .errors import ParseError

ENTITY_ID_LENGTH = 8
ENTITY_ID_SEPARATOR = ":"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

EntityIdLike = Union[bytes, bytearray, str, Iterable[int]]


def parse_entity_id(line: str) -> bytes:
    """Decode a text line into an 8-byte entity ID.

    Raises:
        ParseError: On a bad hex digit, a missing separator, a short line or
            non-whitespace content after the eighth group.
    """
    pos = 0
    output = bytearray()
    for index in range(ENTITY_ID_LENGTH):
        pair = line[pos:pos + 2]
        if len(pair) != 2 or not all(ch in _HEX_DIGITS for ch in pair):
            raise ParseError(f"Invalid hex digits in entity ID at byte {index}: {line!r}", line)
        output.append(int(pair, 16))
        pos += 2

        if index < ENTITY_ID_LENGTH - 1:
            if line[pos:pos + 1] != ENTITY_ID_SEPARATOR:
                raise ParseError(f"Missing separator in entity ID after byte {index}: {line!r}", line)
            pos += 1

    trailing = line[pos:]
    if trailing and not trailing.isspace():
        raise ParseError(f"Unexpected trailing content after entity ID: {line!r}", line)

    return bytes(output)


def format_entity_id(entity_id: bytes) -> str:
    """Encode an 8-byte entity ID as ``XX:XX:XX:XX:XX:XX:XX:XX`` (uppercase)."""
    if len(entity_id) != ENTITY_ID_LENGTH:
        raise ValueError(f"Entity ID must be {ENTITY_ID_LENGTH} bytes, got {len(entity_id)}")
    return ENTITY_ID_SEPARATOR.join(f"{byte:02X}" for byte in entity_id)


def coerce_entity_id(value: EntityIdLike) -> bytes:
    """Normalize bytes, text or a sequence of ints into an 8-byte entity ID."""
    if isinstance(value, str):
        return parse_entity_id(value)
    if isinstance(value, (bytes, bytearray)):
        result = bytes(value)
    elif isinstance(value, int):
        raise TypeError(f"Unsupported entity ID value: {value!r}")
    else:
        try:
            result = bytes(value)
        except TypeError as exc:
            raise TypeError(f"Unsupported entity ID value: {value!r}") from exc
    if len(result) != ENTITY_ID_LENGTH:
        raise ValueError(f"Entity ID must be {ENTITY_ID_LENGTH} bytes, got {len(result)}")
    return result


__all__ = [
    "ENTITY_ID_LENGTH",
    "EntityIdLike",
    "parse_entity_id",
    "format_entity_id",
    "coerce_entity_id",
]
