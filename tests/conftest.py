"""Shared pytest configuration and fixtures for the capture appliance suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.infrastructure.mocks.audio_mocks import (  # noqa: E402
    DeviceBehaviour,
    FakeBackend,
    TerminationRecorder,
    usb_card,
)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring physical hardware"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require a USB audio interface",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def device_behaviour() -> DeviceBehaviour:
    """Default device behaviour: accept every request."""
    return DeviceBehaviour()


@pytest.fixture
def fake_backend(device_behaviour: DeviceBehaviour) -> FakeBackend:
    """Backend exposing one USB card with a capture and a playback endpoint."""
    return FakeBackend([usb_card()], device_behaviour)


@pytest.fixture
def termination() -> TerminationRecorder:
    """Records supervisor sleeps and exit codes instead of exiting."""
    return TerminationRecorder()
