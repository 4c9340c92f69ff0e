"""
Connection-side helpers built on the saved state.

This package provides:
- ListenerDescriptor, the listener identity used as the saved-state key
- FastConnectCoordinator, which saves, clears and restores connections
"""

from .fast_connect import FastConnectCoordinator, ListenerDescriptor

__all__ = [
    'FastConnectCoordinator',
    'ListenerDescriptor',
]
