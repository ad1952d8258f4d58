"""
Fulfillment Service Business Logic

Runs the two fulfillment phases for one order:

    PHASE 1  order store   Open -> Processed (compare-and-set, retried)
    PHASE 2  shared volume <orderId>.json written and fsynced

Phase 2 also runs when phase 1 finds the order already processed, so a
request redelivered after a crash between the phases completes the
checkpoint. Phase 1 is never rolled back when phase 2 fails.
"""

import logging

from .models import FulfillmentResult, StoreOutcome, is_valid_order_id
from .protocols import CheckpointerProtocol, InvalidOrderIdError, OrderRepositoryProtocol

logger = logging.getLogger(__name__)


class FulfillmentService:
    """Coordinates the store transition and the file checkpoint"""

    def __init__(self, repository: OrderRepositoryProtocol, checkpointer: CheckpointerProtocol):
        self.repository = repository
        self.checkpointer = checkpointer

    async def fulfill(self, order_id: str) -> FulfillmentResult:
        """
        Fulfill an order

        Args:
            order_id: 24-character hex order id

        Returns:
            FulfillmentResult with one flag per phase

        Raises:
            InvalidOrderIdError: order_id is empty or malformed; nothing was touched
        """
        if not is_valid_order_id(order_id):
            raise InvalidOrderIdError(order_id)

        logger.info(f"Fulfilling order {order_id}")
        outcome = await self.repository.transition_to_processed(order_id)
        if not outcome.is_terminal:
            logger.warning(f"Order {order_id} not processed in store ({outcome.value}); expecting redelivery")
            return FulfillmentResult(order_id=order_id)

        written = await self.checkpointer.checkpoint(order_id)
        if not written:
            logger.warning(f"Order {order_id} processed in store but checkpoint failed; expecting redelivery")

        return FulfillmentResult(
            order_id=order_id,
            processed_in_store=True,
            written_to_file_system=written,
        )
