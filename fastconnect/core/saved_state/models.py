"""Saved-state record model."""

from __future__ import annotations

from dataclasses import dataclass

from .entity_id import EntityIdLike, coerce_entity_id, format_entity_id

MAX_SAVED_STATES = 4
FRIENDLY_NAME_SIZE = 64
MAX_FRIENDLY_NAME_LENGTH = FRIENDLY_NAME_SIZE - 1


def normalize_friendly_name(name: str) -> str:
    """Truncate a listener friendly name to what the save file can hold."""
    if not isinstance(name, str):
        raise TypeError(f"Friendly name must be a string, got {type(name).__name__}")
    if "\n" in name or "\r" in name:
        raise ValueError(f"Friendly name may not contain line breaks: {name!r}")
    name = name[:MAX_FRIENDLY_NAME_LENGTH]
    if not name:
        raise ValueError("Friendly name may not be empty")
    return name


@dataclass(frozen=True)
class SavedState:
    """One fast-connect record: a listener and the talker/controller it was bound to."""
    friendly_name: str
    talker_entity_id: bytes
    controller_entity_id: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "friendly_name", normalize_friendly_name(self.friendly_name))
        object.__setattr__(self, "talker_entity_id", coerce_entity_id(self.talker_entity_id))
        object.__setattr__(self, "controller_entity_id", coerce_entity_id(self.controller_entity_id))

    @classmethod
    def create(
        cls,
        friendly_name: str,
        talker_entity_id: EntityIdLike,
        controller_entity_id: EntityIdLike,
    ) -> "SavedState":
        return cls(friendly_name, talker_entity_id, controller_entity_id)

    def matches(self, talker_entity_id: bytes, controller_entity_id: bytes) -> bool:
        return (
            self.talker_entity_id == talker_entity_id
            and self.controller_entity_id == controller_entity_id
        )

    @property
    def talker_id_text(self) -> str:
        return format_entity_id(self.talker_entity_id)

    @property
    def controller_id_text(self) -> str:
        return format_entity_id(self.controller_entity_id)

    def __str__(self) -> str:
        return (
            f"listener_id={self.friendly_name}, "
            f"talker_entity_id={self.talker_id_text}, "
            f"controller_entity_id={self.controller_id_text}"
        )


__all__ = [
    "MAX_SAVED_STATES",
    "FRIENDLY_NAME_SIZE",
    "MAX_FRIENDLY_NAME_LENGTH",
    "SavedState",
    "normalize_friendly_name",
]
