"""
Fast-connect coordinator.

Bridges listener connection events to the saved-state store:

1. ``on_connected`` - a listener was bound to a talker by a controller.
   The binding is saved so it can be restored after a restart.

2. ``on_disconnected`` - the controller tore the connection down.
   The saved binding is removed so it is not restored.

3. ``pending_restores`` - at startup, the saved bindings for the
   listeners this process hosts, oldest first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from fastconnect.core.config_manager import FastConnectConfig
from fastconnect.core.logging_utils import get_module_logger
from fastconnect.core.saved_state import SavedState, SavedStateStore
from fastconnect.core.saved_state.entity_id import EntityIdLike
from fastconnect.core.saved_state.models import MAX_FRIENDLY_NAME_LENGTH


@dataclass(frozen=True)
class ListenerDescriptor:
    """The part of a listener's configuration the saved state cares about."""
    friendly_name: str


class FastConnectCoordinator:
    """
    Single entry point for saving and restoring listener connections.

    Usage:
        coordinator = FastConnectCoordinator.from_config(load_fast_connect_config())

        for listener, saved in coordinator.pending_restores(listeners):
            reconnect(listener, saved.talker_entity_id, saved.controller_entity_id)

        coordinator.on_connected(listener, talker_id, controller_id)
        coordinator.on_disconnected(listener)
    """

    def __init__(self, store: SavedStateStore):
        self.logger = get_module_logger("FastConnect")
        self._store = store

    @classmethod
    def from_config(cls, config: FastConnectConfig) -> "FastConnectCoordinator":
        return cls(SavedStateStore.from_config(config))

    @property
    def store(self) -> SavedStateStore:
        return self._store

    @property
    def enabled(self) -> bool:
        return self._store.fast_connect_supported

    def on_connected(
        self,
        listener: ListenerDescriptor,
        talker_entity_id: EntityIdLike,
        controller_entity_id: EntityIdLike,
    ) -> bool:
        """Save the connection so it is restored on the next startup."""
        if not self.enabled:
            self.logger.debug("PERSIST SKIP: %s (fast connect disabled)", listener.friendly_name)
            return False

        success = self._store.upsert(listener.friendly_name, talker_entity_id, controller_entity_id)
        if not success:
            self.logger.error("PERSIST FAILED: %s", listener.friendly_name)
        return success

    def on_disconnected(self, listener: ListenerDescriptor) -> bool:
        """Forget the saved connection of ``listener``."""
        return self._store.clear(listener.friendly_name)

    def saved_state_for(self, listener: ListenerDescriptor) -> Optional[SavedState]:
        index = self._store.find(listener.friendly_name)
        if index is None:
            return None
        return self._store.get_at(index)

    def pending_restores(
        self, listeners: Iterable[ListenerDescriptor]
    ) -> List[Tuple[ListenerDescriptor, SavedState]]:
        """Saved connections to re-establish for ``listeners``, in store order."""
        if not self.enabled:
            return []

        by_name = {}
        for listener in listeners:
            by_name.setdefault(listener.friendly_name[:MAX_FRIENDLY_NAME_LENGTH], listener)

        restores: List[Tuple[ListenerDescriptor, SavedState]] = []
        seen = set()
        index = 0
        while (saved := self._store.get_at(index)) is not None:
            index += 1
            listener = by_name.get(saved.friendly_name)
            if listener is None or saved.friendly_name in seen:
                continue
            seen.add(saved.friendly_name)
            restores.append((listener, saved))

        self.logger.info("RESTORE: %d saved connections for %d listeners", len(restores), len(by_name))
        return restores


__all__ = ["ListenerDescriptor", "FastConnectCoordinator"]
