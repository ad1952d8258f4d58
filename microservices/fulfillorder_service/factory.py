"""
Fulfill Order Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that builds I/O-dependent collaborators.

Usage:
    from .factory import create_fulfillment_service
    service, repository = await create_fulfillment_service(config, telemetry)
"""
from typing import Optional, Tuple

from core.config import FulfillOrderConfig, get_settings

from .file_checkpointer import FileCheckpointer
from .fulfillment_service import FulfillmentService
from .order_repository import OrderRepository
from .telemetry import TelemetryEmitter


def create_telemetry(config: Optional[FulfillOrderConfig] = None) -> TelemetryEmitter:
    """Create the telemetry emitter from configuration"""
    config = config or get_settings()
    return TelemetryEmitter.from_config(config.telemetry)


async def create_fulfillment_service(
    config: Optional[FulfillOrderConfig] = None,
    telemetry: Optional[TelemetryEmitter] = None,
) -> Tuple[FulfillmentService, OrderRepository]:
    """
    Create FulfillmentService with real dependencies.

    Connects to the order store before returning. Use this in production,
    NOT in tests.

    Args:
        config: Service configuration (defaults to environment)
        telemetry: Telemetry emitter (defaults to one built from config)

    Returns:
        The service and its repository (the caller closes the repository)

    Raises:
        StoreInitError: The order store cannot be reached
    """
    config = config or get_settings()
    telemetry = telemetry or create_telemetry(config)

    repository = OrderRepository(
        config=config.infrastructure,
        telemetry=telemetry,
        retry_attempts=config.store_retry_attempts,
        retry_wait_seconds=config.store_retry_wait_seconds,
    )
    await repository.connect()

    checkpointer = FileCheckpointer(orders_dir=config.orders_dir, telemetry=telemetry)

    return FulfillmentService(repository=repository, checkpointer=checkpointer), repository
