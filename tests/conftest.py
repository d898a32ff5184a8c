"""Root conftest for all tests - setup sys.path and reset global state."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path so tests can import tests.helpers
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tests.helpers import make_trade  # noqa: E402
from tradejournal.system import LoggerFactory  # noqa: E402
from tradejournal.system import config as system_config_module  # noqa: E402


@pytest.fixture
def trade_factory():
    """Factory fixture for Trade models."""
    return make_trade


@pytest.fixture(autouse=True)
def reset_global_state():
    """Drop cached system config and logging setup between tests."""
    system_config_module._system_config = None
    yield
    system_config_module._system_config = None
    LoggerFactory.reset()
