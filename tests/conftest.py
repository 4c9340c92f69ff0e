"""Shared pytest configuration and fixtures for the fastconnect test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

TALKER_A = bytes(range(0x01, 0x09))
CONTROLLER_A = bytes(range(0x11, 0x19))
TALKER_B = bytes.fromhex("AABBCCDDEEFF0011")
CONTROLLER_B = bytes.fromhex("0102030405060708")


@pytest.fixture
def state_file(tmp_path) -> Path:
    """Path of a (not yet existing) saved-state file."""
    return tmp_path / "avdecc_save.ini"


@pytest.fixture
def store(state_file):
    """A fresh store over ``state_file`` with fast connect enabled."""
    from fastconnect.core.saved_state import SavedStateStore
    return SavedStateStore(state_file)


@pytest.fixture
def write_state_file(state_file):
    """Write raw text to ``state_file`` and return its path."""
    def _write(text: str) -> Path:
        state_file.write_text(text, encoding="utf-8")
        return state_file
    return _write


@pytest.fixture
def ids():
    """Sample entity IDs used across the suite."""
    return {
        "talker_a": TALKER_A,
        "controller_a": CONTROLLER_A,
        "talker_b": TALKER_B,
        "controller_b": CONTROLLER_B,
    }
