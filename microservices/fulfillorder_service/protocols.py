"""
Fulfill Order Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import datetime
from typing import Dict, Optional, Protocol, runtime_checkable

from .models import StoreOutcome


# ============================================================================
# Custom Exceptions - defined here to avoid importing the repository
# ============================================================================

class FulfillOrderError(Exception):
    """Base exception for fulfill order service errors"""
    pass


class InvalidOrderIdError(FulfillOrderError):
    """Order id is empty or not a 24-character hex ObjectId"""

    def __init__(self, order_id: Optional[str]):
        self.order_id = order_id or ""
        super().__init__(f"Invalid order id: {order_id!r}")


class StoreInitError(FulfillOrderError):
    """Order store could not be configured or reached at startup"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class OrderRepositoryProtocol(Protocol):
    """Interface for the order store gateway"""

    async def transition_to_processed(self, order_id: str) -> StoreOutcome:
        """Move an Open order to Processed under a compare-and-set guard"""
        ...


# ============================================================================
# Checkpointer Protocol
# ============================================================================

@runtime_checkable
class CheckpointerProtocol(Protocol):
    """Interface for the durable per-order artifact writer"""

    async def checkpoint(self, order_id: str) -> bool:
        """Write and sync the artifact; False when it could not be made durable"""
        ...


# ============================================================================
# Telemetry Protocol
# ============================================================================

@runtime_checkable
class TelemetryProtocol(Protocol):
    """Interface for the telemetry emitter - tracking never raises"""

    def track_event(self, name: str, properties: Optional[Dict[str, str]] = None) -> None:
        ...

    def track_exception(self, error: BaseException, properties: Optional[Dict[str, str]] = None) -> None:
        ...

    def track_request(
        self,
        method: str,
        url: str,
        start_time: datetime,
        duration_seconds: float,
        response_code: str,
        name: Optional[str] = None,
        properties: Optional[Dict[str, str]] = None,
    ) -> None:
        ...
