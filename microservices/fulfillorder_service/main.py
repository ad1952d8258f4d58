"""
Fulfill Order Microservice

Responsibilities:
- Mark open orders as processed in the order store (idempotent on replay)
- Checkpoint each fulfilled order to the shared /orders volume
- Request, event and exception telemetry to Application Insights

Endpoints:
- POST /v1/order/   {"orderId": "<24-hex>"}
- GET  /healthz     liveness probe
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from core.config import get_settings
from core.logger import setup_service_logger

from .factory import create_fulfillment_service, create_telemetry
from .fulfillment_service import FulfillmentService
from .models import FulfillmentRequest, FulfillmentResponse
from .order_repository import OrderRepository
from .protocols import InvalidOrderIdError, StoreInitError, TelemetryProtocol
from .telemetry import SERVICE_NAME, TelemetryEmitter

# Initialize configuration
config = get_settings()

# Setup loggers (use actual service name)
logger = setup_service_logger("fulfillorder_service", config.logging)

REQUEST_URL = "fulfillorder.svc/orders/v1"


class FulfillOrderMicroservice:
    """Holds the process-wide collaborators for the lifetime of the app"""

    def __init__(self):
        self.fulfillment_service: Optional[FulfillmentService] = None
        self.repository: Optional[OrderRepository] = None
        self.telemetry: Optional[TelemetryEmitter] = None

    async def initialize(self):
        for name in config.missing_required():
            logger.warning(f"The environment variable {name} has not been set")

        self.telemetry = create_telemetry(config)
        await self.telemetry.start()

        try:
            self.fulfillment_service, self.repository = await create_fulfillment_service(config, self.telemetry)
        except StoreInitError as e:
            logger.critical(f"Order store initialization failed: {e}")
            await self.telemetry.close()
            raise

        logger.info("Fulfill order service initialized")

    async def shutdown(self):
        if self.repository:
            self.repository.close()
        if self.telemetry:
            await self.telemetry.close()
        logger.info("Fulfill order service shut down")


fulfillorder_microservice = FulfillOrderMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    # A failed store dial propagates and aborts startup with a non-zero exit
    await fulfillorder_microservice.initialize()

    yield

    await fulfillorder_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Fulfill Order Service",
    description="Marks orders processed and checkpoints them to the shared volume",
    version="1.0.0",
    lifespan=lifespan
)


# Dependency injection
def get_fulfillment_service() -> FulfillmentService:
    """Get fulfillment service instance"""
    if not fulfillorder_microservice.fulfillment_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Fulfillment service not initialized"
        )
    return fulfillorder_microservice.fulfillment_service


def get_telemetry() -> TelemetryProtocol:
    """Get telemetry emitter instance"""
    if not fulfillorder_microservice.telemetry:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Telemetry not initialized"
        )
    return fulfillorder_microservice.telemetry


# Health check endpoints
@app.get("/healthz", response_class=PlainTextResponse)
async def healthz():
    """Liveness probe"""
    return "i'm alive!"


@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "ok",
        "service": "fulfillorder_service",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


def _echo_order_id(body: bytes) -> str:
    """Best-effort orderId from a body that failed validation"""
    try:
        payload: Any = json.loads(body)
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("orderId"), str):
        return payload["orderId"]
    return ""


@app.post("/v1/order/")
@app.post("/v1/order", include_in_schema=False)
async def fulfill_order(
    request: Request,
    fulfillment_service: FulfillmentService = Depends(get_fulfillment_service),
    telemetry: TelemetryProtocol = Depends(get_telemetry)
):
    """
    Fulfill an order

    Always answers 200 for a well-formed request; the body reports each phase
    so the caller can decide between acknowledging and redelivering.
    Malformed bodies and invalid order ids answer 400 with both flags false.
    """
    start_time = datetime.now(timezone.utc)
    started = time.perf_counter()

    body = await request.body()
    status_code = status.HTTP_200_OK
    success = False
    try:
        fulfillment_request = FulfillmentRequest.model_validate_json(body)
        result = await fulfillment_service.fulfill(fulfillment_request.order_id)
        response = FulfillmentResponse.from_result(result)
        success = result.success
    except ValidationError as e:
        logger.warning(f"Rejected fulfillment request body: {e.error_count()} validation error(s)")
        response = FulfillmentResponse.rejected(_echo_order_id(body))
        status_code = status.HTTP_400_BAD_REQUEST
    except InvalidOrderIdError as e:
        logger.warning(str(e))
        response = FulfillmentResponse.rejected(e.order_id)
        status_code = status.HTTP_400_BAD_REQUEST

    telemetry.track_request(
        "POST",
        REQUEST_URL,
        start_time=start_time,
        duration_seconds=time.perf_counter() - started,
        response_code="200" if success else "500",
        name=SERVICE_NAME,
        properties={"service": SERVICE_NAME},
    )

    return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.fulfillorder_service.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.logging.log_level.lower()
    )
