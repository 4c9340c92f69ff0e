"""Fast-connect saved state for AVB listener connections."""

from __future__ import annotations

from importlib import metadata
from typing import Optional, Sequence

from .core import (
    FastConnectConfig,
    FastConnectCoordinator,
    ListenerDescriptor,
    SavedState,
    SavedStateStore,
    load_fast_connect_config,
)

try:
    __version__ = metadata.version("fastconnect")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Convenience wrapper around the saved-state command line."""
    from .cli.saved_state_cli import main

    return main(list(argv) if argv is not None else None)


__all__ = [
    "__version__",
    "run",
    "FastConnectConfig",
    "FastConnectCoordinator",
    "ListenerDescriptor",
    "SavedState",
    "SavedStateStore",
    "load_fast_connect_config",
]
