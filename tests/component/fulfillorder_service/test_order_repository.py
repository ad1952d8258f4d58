"""
Order Repository Component Tests

Compare-and-set transition, retry policy and store telemetry against an
in-memory collection.

Usage:
    pytest tests/component/fulfillorder_service/test_order_repository.py -v
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import AutoReconnect, NetworkTimeout, ServerSelectionTimeoutError

from core.config import InfraConfig
from microservices.fulfillorder_service.models import OrderStatus, StoreOutcome
from microservices.fulfillorder_service.order_repository import OrderRepository
from microservices.fulfillorder_service.protocols import InvalidOrderIdError, StoreInitError

from tests.fixtures import make_order_document

pytestmark = [pytest.mark.component]


# =============================================================================
# transition_to_processed() - outcomes
# =============================================================================

@pytest.mark.asyncio
class TestTransitionOutcomes:
    """Outcome of a single transition against the store"""

    async def test_open_order_is_fulfilled(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id))

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.FULFILLED
        assert mock_collection.status_of(order_id) == OrderStatus.PROCESSED.value

    async def test_update_is_guarded_by_open_status(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id))

        await repository.transition_to_processed(order_id)

        _, query, update = [c for c in mock_collection.calls if c[0] == "update_one"][0]
        assert query["status"] == "Open"
        assert str(query["_id"]) == order_id
        assert update == {"$set": {"status": "Processed"}}

    async def test_processed_order_is_already_processed(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id, status=OrderStatus.PROCESSED))

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.ALREADY_PROCESSED
        assert mock_collection.get_call_count("update_one") == 0
        assert mock_collection.status_of(order_id) == "Processed"

    async def test_unknown_order_is_already_processed(self, repository, mock_collection, order_id):
        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.ALREADY_PROCESSED
        assert mock_collection.get_call_count("update_one") == 0

    async def test_replay_writes_only_once(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id))

        first = await repository.transition_to_processed(order_id)
        second = await repository.transition_to_processed(order_id)

        assert first is StoreOutcome.FULFILLED
        assert second is StoreOutcome.ALREADY_PROCESSED
        assert mock_collection.get_call_count("update_one") == 1
        assert mock_collection.status_of(order_id) == "Processed"

    @pytest.mark.parametrize("bad_id", ["", "not-hex", "507f1f77bcf86cd79943901", "507f1f77bcf86cd799439011ab", "zzzzzzzzzzzzzzzzzzzzzzzz"])
    async def test_invalid_order_id_is_rejected(self, repository, mock_collection, bad_id):
        with pytest.raises(InvalidOrderIdError):
            await repository.transition_to_processed(bad_id)

        assert mock_collection.calls == []


# =============================================================================
# transition_to_processed() - retries
# =============================================================================

@pytest.mark.asyncio
class TestTransitionRetries:
    """Bounded retry of transient store failures"""

    async def test_recovers_within_three_attempts(self, repository, mock_collection, mock_telemetry, order_id):
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(2)

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.FULFILLED
        assert mock_collection.get_call_count("update_one") == 3
        assert len(mock_telemetry.exceptions) == 2
        assert mock_collection.status_of(order_id) == "Processed"

    async def test_gives_up_after_three_attempts(self, repository, mock_collection, mock_telemetry, order_id):
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(5)

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.STORE_UNAVAILABLE
        assert mock_collection.get_call_count("update_one") == 3
        assert len(mock_telemetry.exceptions) == 3
        assert all(e["properties"]["orderId"] == order_id for e in mock_telemetry.exceptions)
        assert mock_collection.status_of(order_id) == "Open"

    async def test_lookup_failures_are_retried(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(3, NetworkTimeout("timed out"), method="find_one")

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.STORE_UNAVAILABLE
        assert mock_collection.get_call_count("find_one") == 3
        assert mock_collection.get_call_count("update_one") == 0

    async def test_attempts_are_configurable(self, infra_config, mock_collection, mock_telemetry, order_id):
        repository = OrderRepository(infra_config, mock_telemetry, collection=mock_collection, retry_attempts=1, retry_wait_seconds=0)
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(1, AutoReconnect("reset"))

        outcome = await repository.transition_to_processed(order_id)

        assert outcome is StoreOutcome.STORE_UNAVAILABLE
        assert mock_collection.get_call_count("update_one") == 1

    async def test_later_request_succeeds_after_outage(self, repository, mock_collection, order_id):
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(3)

        assert await repository.transition_to_processed(order_id) is StoreOutcome.STORE_UNAVAILABLE
        assert await repository.transition_to_processed(order_id) is StoreOutcome.FULFILLED


# =============================================================================
# Store telemetry
# =============================================================================

@pytest.mark.asyncio
class TestTransitionTelemetry:
    """Sequence 4 event on terminal success"""

    async def test_event_on_fulfilled(self, repository, mock_collection, mock_telemetry, order_id):
        mock_collection.insert(make_order_document(order_id))

        await repository.transition_to_processed(order_id)

        assert mock_telemetry.events == [{
            "name": "FulfillOrder db MongoDB",
            "properties": {
                "service": "FulfillOrder",
                "sequence": "4",
                "type": "MongoDB",
                "orderId": order_id,
            },
        }]

    async def test_event_on_already_processed(self, repository, mock_telemetry, order_id):
        await repository.transition_to_processed(order_id)

        assert len(mock_telemetry.events_with_sequence("4")) == 1

    async def test_no_event_when_store_unavailable(self, repository, mock_collection, mock_telemetry, order_id):
        mock_collection.insert(make_order_document(order_id))
        mock_collection.set_failures(3)

        await repository.transition_to_processed(order_id)

        assert mock_telemetry.events == []

    async def test_cosmos_store_kind(self, mock_collection, mock_telemetry, order_id):
        config = InfraConfig(mongo_host="team.documents.azure.com")
        repository = OrderRepository(config, mock_telemetry, collection=mock_collection, retry_wait_seconds=0)

        await repository.transition_to_processed(order_id)

        event = mock_telemetry.events[0]
        assert event["name"] == "FulfillOrder db CosmosDB"
        assert event["properties"]["type"] == "CosmosDB"


# =============================================================================
# Connection settings
# =============================================================================

class TestClientOptions:
    """Driver options derived from configuration"""

    def test_mongo_options(self, mock_telemetry):
        config = InfraConfig(mongo_host="mongo:27017", mongo_user="orders", mongo_password="secret", mongo_pool_limit=10)
        options = OrderRepository(config, mock_telemetry)._client_options()

        assert options["maxPoolSize"] == 10
        assert options["connectTimeoutMS"] == 60000
        assert options["serverSelectionTimeoutMS"] == 60000
        assert options["readPreference"] == "primaryPreferred"
        assert options["w"] == 0
        assert options["tls"] is False
        assert options["username"] == "orders"
        assert options["authSource"] == "akschallenge"
        assert "retryWrites" not in options

    def test_cosmos_options_force_tls(self, mock_telemetry):
        config = InfraConfig(mongo_host="team.documents.azure.com", mongo_user="team", mongo_password="key")
        options = OrderRepository(config, mock_telemetry)._client_options()

        assert options["tls"] is True
        assert options["retryWrites"] is False

    def test_acknowledged_writes(self, mock_telemetry):
        config = InfraConfig(mongo_host="mongo", mongo_unsafe_writes=False)
        options = OrderRepository(config, mock_telemetry)._client_options()

        assert "w" not in options
        assert "username" not in options


@pytest.mark.asyncio
class TestConnect:
    """Startup failures"""

    async def test_missing_host_is_fatal(self, mock_telemetry):
        repository = OrderRepository(InfraConfig(), mock_telemetry)

        with pytest.raises(StoreInitError):
            await repository.connect()

    async def test_unreachable_store_is_fatal(self, mock_telemetry):
        motor_client = MagicMock()
        motor_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        repository = OrderRepository(InfraConfig(mongo_host="mongo"), mock_telemetry)

        with patch(
            "microservices.fulfillorder_service.order_repository.AsyncIOMotorClient",
            return_value=motor_client,
        ):
            with pytest.raises(StoreInitError):
                await repository.connect()

        motor_client.admin.command.assert_awaited_once_with("ping")
        motor_client.close.assert_called_once()
        assert repository.client is None
        assert len(mock_telemetry.exceptions) == 1

    async def test_use_before_connect(self, mock_telemetry, order_id):
        repository = OrderRepository(InfraConfig(mongo_host="mongo"), mock_telemetry)

        with pytest.raises(StoreInitError):
            await repository.transition_to_processed(order_id)

    async def test_injected_collection_skips_dial(self, repository):
        await repository.connect()

        assert repository.client is None
