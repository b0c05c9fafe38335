import sys
import pytest
from pathlib import Path

# Add project root (2 levels up from tests/) to sys.path so tests can import 'callrelay'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from callrelay.config.settings import Settings
from callrelay.services.call import CallSessionTable
from callrelay.services.connection import ConnectionRegistry
from callrelay.services.session import SignalingRouter


@pytest.fixture
def test_settings():
    """Settings with the background timers switched off."""
    return Settings(
        RING_TIMEOUT_SEC=30.0,
        HEARTBEAT_TIMEOUT_SEC=0,
        SEND_TIMEOUT_SEC=0.5,
        REMOVED_CALL_HISTORY=16,
        METRICS_ENABLED=False,
    )


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def calls(test_settings):
    return CallSessionTable(history_size=test_settings.REMOVED_CALL_HISTORY)


@pytest.fixture
def router(registry, calls, test_settings):
    return SignalingRouter(registry, calls, test_settings)
