"""
Order Repository

Gateway to the order store (MongoDB or Azure Cosmos DB Mongo API) using Motor.
Owns the process-wide client and its connection pool, and exposes the single
compare-and-set transition the fulfillment flow needs.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed

from core.config import InfraConfig

from .models import Order, OrderStatus, StoreOutcome, is_valid_order_id
from .protocols import InvalidOrderIdError, StoreInitError, TelemetryProtocol
from .telemetry import SERVICE_NAME

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Repository for the order collection.

    Collection:
        - <MONGO_DATABASE>.<MONGO_COLLECTION> (akschallenge.orders by default)
    """

    def __init__(
        self,
        config: InfraConfig,
        telemetry: TelemetryProtocol,
        collection: Any = None,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 3.0,
    ):
        """
        Initialize Order Repository

        Args:
            config: Order store settings
            telemetry: Telemetry emitter for store events and failures
            collection: Pre-built collection (skips connect; used by tests)
            retry_attempts: Attempts for the status update
            retry_wait_seconds: Fixed pause between attempts
        """
        self.config = config
        self.telemetry = telemetry
        self.retry_attempts = retry_attempts
        self.retry_wait_seconds = retry_wait_seconds

        self.client: Optional[AsyncIOMotorClient] = None
        self._collection = collection

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _client_options(self) -> Dict[str, Any]:
        timeout_ms = int(self.config.mongo_timeout_seconds * 1000)
        options: Dict[str, Any] = {
            "connectTimeoutMS": timeout_ms,
            "serverSelectionTimeoutMS": timeout_ms,
            "maxPoolSize": self.config.mongo_pool_limit,
            "readPreference": "primaryPreferred",
            "tls": self.config.use_tls,
        }
        if self.config.mongo_unsafe_writes:
            # Fire-and-forget writes; the server does not acknowledge updates
            options["w"] = 0
        if self.config.is_cosmos_db:
            options["retryWrites"] = False
        if self.config.mongo_user:
            options["username"] = self.config.mongo_user
            options["password"] = self.config.mongo_password or ""
            options["authSource"] = self.config.mongo_database
        return options

    async def connect(self):
        """
        Dial the order store and verify it answers

        Raises:
            StoreInitError: Host missing or the store cannot be reached
        """
        if self._collection is not None:
            return

        address = self.config.address
        if not address:
            raise StoreInitError("MONGOHOST is not set; cannot dial the order store")

        logger.info(f"Using {self.config.store_kind}")
        logger.info(f"\tHost: {address}")
        logger.info(f"\tUsername: {self.config.mongo_user}")
        logger.info(f"\tDatabase: {self.config.mongo_database}")
        logger.info(f"\tTLS: {self.config.use_tls}")
        logger.info(
            f"MongoDB pool limit set to {self.config.mongo_pool_limit}. "
            f"You can override by setting the MONGOPOOL_LIMIT environment variable."
        )

        try:
            self.client = AsyncIOMotorClient(address, **self._client_options())
            await self.client.admin.command("ping")
        except PyMongoError as e:
            self.telemetry.track_exception(e)
            if self.client is not None:
                self.client.close()
                self.client = None
            raise StoreInitError(f"Can't connect to {self.config.store_kind} at [{address}]: {e}") from e

        self._collection = self.client[self.config.mongo_database][self.config.mongo_collection]
        logger.info(f"Connected to {self.config.store_kind} at {address}")

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            self._collection = None
            logger.info("Order store connection closed")

    def _get_collection(self):
        if self._collection is None:
            raise StoreInitError("Order repository used before connect()")
        return self._collection

    # =========================================================================
    # Status transition
    # =========================================================================

    async def transition_to_processed(self, order_id: str) -> StoreOutcome:
        """
        Move the order from Open to Processed

        Not finding an Open order is a terminal success (already processed or
        unknown id), so redelivered requests stop at this phase.

        Args:
            order_id: 24-character hex ObjectId

        Returns:
            FULFILLED, ALREADY_PROCESSED, or STORE_UNAVAILABLE after all attempts failed

        Raises:
            InvalidOrderIdError: order_id is not a valid ObjectId string
        """
        if not is_valid_order_id(order_id):
            raise InvalidOrderIdError(order_id)

        collection = self._get_collection()
        query = {"_id": ObjectId(order_id), "status": OrderStatus.OPEN.value}
        logger.info(f"Looking for {{_id: {order_id}, status: Open}} in {self.config.mongo_collection}")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_fixed(self.retry_wait_seconds),
                retry=retry_if_exception_type(PyMongoError),
                before_sleep=self._log_retry,
                reraise=True,
            ):
                with attempt:
                    outcome = await self._compare_and_set(collection, query, order_id)
        except PyMongoError as e:
            logger.error(f"Error updating order {order_id} after {self.retry_attempts} attempts: {e}")
            return StoreOutcome.STORE_UNAVAILABLE

        self.telemetry.track_event(f"{SERVICE_NAME} db {self.config.store_kind}", {
            "service": SERVICE_NAME,
            "sequence": "4",
            "type": self.config.store_kind,
            "orderId": order_id,
        })
        return outcome

    async def _compare_and_set(self, collection, query: Dict[str, Any], order_id: str) -> StoreOutcome:
        try:
            document = await collection.find_one(query)
            if document is None:
                logger.info(f"Order {order_id} not found in Open state (already processed)")
                return StoreOutcome.ALREADY_PROCESSED

            self._log_order(document)
            await collection.update_one(query, {"$set": {"status": OrderStatus.PROCESSED.value}})
        except PyMongoError as e:
            self.telemetry.track_exception(e, {"orderId": order_id})
            raise

        logger.info(f"Order {order_id} set status: Processed")
        return StoreOutcome.FULFILLED

    def _log_retry(self, retry_state: RetryCallState):
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Error processing record (attempt {retry_state.attempt_number}/{self.retry_attempts}). "
            f"Will retry in {self.retry_wait_seconds:g} seconds: {error}"
        )

    def _log_order(self, document: Dict[str, Any]):
        try:
            order = Order.from_document(document)
        except ValidationError as e:
            logger.warning(f"Order document {document.get('_id')} does not match the order shape: {e}")
            return
        logger.debug(f"Processing order {order.order_id} for {order.email_address} ({order.product}, total {order.total})")
