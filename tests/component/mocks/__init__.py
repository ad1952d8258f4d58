"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (order store, telemetry sinks).
"""

from .mongo_mock import MockOrderCollection
from .telemetry_mock import MockTelemetry

__all__ = [
    'MockOrderCollection',
    'MockTelemetry',
]
