"""
Fast-connect saved state.

This package provides:
- An 8-byte entity ID text codec
- The saved-state file reader and writer
- SavedStateStore, the bounded record list with write-through persistence
"""

from .entity_id import coerce_entity_id, format_entity_id, parse_entity_id
from .errors import LoadError, ParseError, PersistError, SavedStateError
from .file_format import load_saved_states, split_state_path, write_saved_states
from .models import FRIENDLY_NAME_SIZE, MAX_SAVED_STATES, SavedState
from .store import SavedStateStore, StoreState

__all__ = [
    # Codec
    'parse_entity_id',
    'format_entity_id',
    'coerce_entity_id',
    # Errors
    'SavedStateError',
    'ParseError',
    'LoadError',
    'PersistError',
    # File
    'load_saved_states',
    'write_saved_states',
    'split_state_path',
    # Model
    'SavedState',
    'MAX_SAVED_STATES',
    'FRIENDLY_NAME_SIZE',
    # Store
    'SavedStateStore',
    'StoreState',
]
