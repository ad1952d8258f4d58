"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked store and telemetry, real filesystem in tmp dirs)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Set testing environment BEFORE any service imports
os.environ.setdefault("ENV", "testing")

from tests.fixtures import make_order_id


# =============================================================================
# Test Data
# =============================================================================

# Literal ids used by the end-to-end scenarios
KNOWN_ORDER_ID = "507f1f77bcf86cd799439011"
UNKNOWN_ORDER_ID = "000000000000000000000000"


@pytest.fixture
def order_id() -> str:
    """A fresh, valid order id"""
    return make_order_id()


@pytest.fixture
def orders_dir(tmp_path) -> str:
    """Writable checkpoint directory"""
    path = tmp_path / "orders"
    path.mkdir()
    return str(path)
