"""
Saved-State Store - Remembers listener connections for fast reconnect.

The store keeps up to MAX_SAVED_STATES records in recency order (index 0 is
the oldest) and mirrors every change into the saved-state file with a full
rewrite. The file is loaded lazily by the first operation that needs it.

State rules:
1. A missing file is an empty store, not an error.
2. A failed load leaves the store UNLOADED; every later call retries it.
3. A failed write is logged and reported to the caller. By default the
   in-memory change is kept, so memory and disk differ until the next
   successful write. With ``rollback_on_failure=True`` the change is undone.
4. Friendly names are unique only because ``upsert`` replaces an existing
   record with the same name. ``add`` and direct file edits can still
   produce duplicates; lookups return the oldest match.

The store does no locking. Callers must serialize access.
"""

from __future__ import annotations

import os
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple, Union

from fastconnect.core.config_manager import FastConnectConfig
from fastconnect.core.logging_utils import get_module_logger
from fastconnect.core.paths import DEFAULT_SAVE_STATE_FILE

from .entity_id import EntityIdLike
from .errors import LoadError, PersistError
from .file_format import load_saved_states, write_saved_states
from .models import MAX_FRIENDLY_NAME_LENGTH, MAX_SAVED_STATES, SavedState

logger = get_module_logger("SavedState")


class StoreState(Enum):
    """Load state of the saved-state list."""
    UNLOADED = auto()
    LOADED = auto()


class SavedStateStore:
    """
    Bounded, file-backed list of fast-connect records.

    Usage:
        store = SavedStateStore("/var/lib/avb/avdecc_save.ini")

        # Connection formed
        store.upsert("Room1", talker_id, controller_id)

        # Startup: walk the saved connections
        index = 0
        while (state := store.get_at(index)) is not None:
            ...
            index += 1

        # Connection torn down by the controller
        store.clear("Room1")
    """

    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"] = DEFAULT_SAVE_STATE_FILE,
        *,
        fast_connect_supported: bool = True,
        rollback_on_failure: bool = False,
        capacity: int = MAX_SAVED_STATES,
    ):
        """
        Args:
            path: Saved-state file, optionally followed by ``,override``.
            fast_connect_supported: When False ``upsert`` does nothing.
            rollback_on_failure: Undo in-memory changes when a write fails.
            capacity: Maximum number of records kept.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._path = os.fspath(path)
        self._fast_connect_supported = fast_connect_supported
        self._rollback_on_failure = rollback_on_failure
        self._capacity = capacity

        self._state = StoreState.UNLOADED
        self._records: List[SavedState] = []

    @classmethod
    def from_config(cls, config: FastConnectConfig) -> "SavedStateStore":
        return cls(
            config.save_state_file,
            fast_connect_supported=config.fast_connect_supported,
            rollback_on_failure=config.rollback_on_failure,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def path(self) -> str:
        return self._path

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is StoreState.LOADED

    @property
    def fast_connect_supported(self) -> bool:
        return self._fast_connect_supported

    @property
    def records(self) -> Tuple[SavedState, ...]:
        """Snapshot of the records, oldest first (empty if loading fails)."""
        self._ensure_loaded()
        return tuple(self._records)

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._records)

    def __iter__(self) -> Iterator[SavedState]:
        return iter(self.records)

    # =========================================================================
    # Loading and persisting
    # =========================================================================

    def _ensure_loaded(self) -> bool:
        if self._state is StoreState.LOADED:
            return True

        try:
            records = load_saved_states(self._path, self._capacity)
        except LoadError as e:
            logger.error("%s (%s)", e, e.__cause__ or "no detail")
            return False

        self._records = records
        self._state = StoreState.LOADED
        return True

    def reload(self) -> bool:
        """Forget the in-memory list and load the file again."""
        self._state = StoreState.UNLOADED
        self._records = []
        return self._ensure_loaded()

    def _persist(self) -> bool:
        try:
            write_saved_states(self._path, self._records)
        except PersistError as e:
            logger.error("%s (%s)", e, e.__cause__ or "no detail")
            return False
        return True

    def _commit(self, previous: List[SavedState]) -> bool:
        if self._persist():
            return True

        if self._rollback_on_failure:
            self._records = previous
            logger.warning("Rolled back saved state change after failed write to %s", self._path)
        return False

    def _append(self, record: SavedState) -> None:
        # If the list is full, drop the oldest records to make room.
        while len(self._records) >= self._capacity:
            evicted = self._records.pop(0)
            logger.debug("Evicted oldest saved state: %s", evicted)
        self._records.append(record)

    # =========================================================================
    # Public operations
    # =========================================================================

    def get_at(self, index: int) -> Optional[SavedState]:
        """Return the record at ``index``, or None past the end.

        To walk the list, start at 0 and count up until None is returned.
        """
        if not self._ensure_loaded():
            return None

        if 0 <= index < len(self._records):
            return self._records[index]
        return None

    def find(self, friendly_name: str) -> Optional[int]:
        """Index of the first record with ``friendly_name``, or None."""
        target = friendly_name[:MAX_FRIENDLY_NAME_LENGTH]
        for index in range(self._capacity):
            record = self.get_at(index)
            if record is None:
                break
            if record.friendly_name == target:
                return index
        return None

    def add(
        self,
        friendly_name: str,
        talker_entity_id: EntityIdLike,
        controller_entity_id: EntityIdLike,
    ) -> Optional[int]:
        """Append a record (evicting the oldest when full) and write the file.

        No duplicate check and no fast-connect check; see ``upsert``.

        Returns:
            Index of the new record, or None if loading or writing failed.
        """
        record = SavedState.create(friendly_name, talker_entity_id, controller_entity_id)

        if not self._ensure_loaded():
            return None

        previous = list(self._records)
        self._append(record)
        if not self._commit(previous):
            logger.error("Error saving state: %s", record)
            return None

        return len(self._records) - 1

    def upsert(
        self,
        friendly_name: str,
        talker_entity_id: EntityIdLike,
        controller_entity_id: EntityIdLike,
    ) -> bool:
        """
        Save the connection of a listener.

        An identical saved record is left alone. A record with the same name
        but other entity IDs is removed and the new one appended, making it
        the most recent.

        Returns:
            True if the record is saved (or already was), False if fast
            connect is disabled or loading/writing failed.
        """
        if not self._fast_connect_supported:
            logger.debug("Fast connect not supported; not saving state for %s", friendly_name)
            return False

        record = SavedState.create(friendly_name, talker_entity_id, controller_entity_id)

        if not self._ensure_loaded():
            return False

        previous = list(self._records)
        index = self.find(record.friendly_name)
        if index is not None:
            existing = self._records[index]
            if existing.matches(record.talker_entity_id, record.controller_entity_id):
                logger.debug("Saved state already current: %s", existing)
                return True

            logger.debug("Replacing saved state: %s", existing)
            del self._records[index]

        self._append(record)
        if not self._commit(previous):
            logger.error("Error saving state: %s", record)
            return False

        logger.info("New saved state: %s", record)
        return True

    def clear(self, friendly_name: str) -> bool:
        """Delete the saved state of a listener.

        Returns:
            True if a record was removed and the file written, False if no
            record has that name or loading/writing failed.
        """
        if not self._ensure_loaded():
            return False

        index = self.find(friendly_name)
        if index is None:
            logger.warning('Unable to find saved state to clear:  listener_id="%s"', friendly_name)
            return False

        if not self.delete_at(index):
            return False

        logger.info('Cleared saved state:  listener_id="%s"', friendly_name)
        return True

    def delete_at(self, index: int) -> bool:
        """Remove the record at ``index``, keeping the others in order.

        Returns:
            True if removed and the file written, False if ``index`` is out
            of range or loading/writing failed.
        """
        if not self._ensure_loaded():
            return False

        if not 0 <= index < len(self._records):
            return False

        previous = list(self._records)
        del self._records[index]
        return self._commit(previous)


__all__ = ["StoreState", "SavedStateStore"]
