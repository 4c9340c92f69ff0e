
from .config_manager import (
    ConfigManager,
    FastConnectConfig,
    get_config_manager,
    load_fast_connect_config,
    load_fast_connect_config_async,
)
from .connection import FastConnectCoordinator, ListenerDescriptor
from .saved_state import (
    MAX_SAVED_STATES,
    LoadError,
    ParseError,
    PersistError,
    SavedState,
    SavedStateError,
    SavedStateStore,
    StoreState,
)

__all__ = [
    'ConfigManager',
    'FastConnectConfig',
    'get_config_manager',
    'load_fast_connect_config',
    'load_fast_connect_config_async',
    'FastConnectCoordinator',
    'ListenerDescriptor',
    'MAX_SAVED_STATES',
    'SavedState',
    'SavedStateStore',
    'StoreState',
    'SavedStateError',
    'ParseError',
    'LoadError',
    'PersistError',
]
