"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── fulfillorder_service/   Service tests
    └── mocks/                  Mock implementations

Usage:
    pytest tests/component -v
"""
import pytest

from microservices.fulfillorder_service.file_checkpointer import FileCheckpointer
from microservices.fulfillorder_service.fulfillment_service import FulfillmentService
from microservices.fulfillorder_service.order_repository import OrderRepository
from core.config import InfraConfig

from tests.component.mocks import MockOrderCollection, MockTelemetry


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Store Mocks
# =============================================================================

@pytest.fixture
def mock_collection() -> MockOrderCollection:
    """Empty mock order collection"""
    return MockOrderCollection()


@pytest.fixture
def mock_telemetry() -> MockTelemetry:
    """Recording telemetry emitter"""
    return MockTelemetry()


@pytest.fixture
def infra_config() -> InfraConfig:
    """Plain MongoDB settings"""
    return InfraConfig(mongo_host="mongo:27017", mongo_user="orders", mongo_password="secret")


# =============================================================================
# Real collaborators over mocks
# =============================================================================

@pytest.fixture
def repository(infra_config, mock_collection, mock_telemetry) -> OrderRepository:
    """Order repository over the mock collection, no retry pause"""
    return OrderRepository(
        config=infra_config,
        telemetry=mock_telemetry,
        collection=mock_collection,
        retry_attempts=3,
        retry_wait_seconds=0,
    )


@pytest.fixture
def checkpointer(orders_dir, mock_telemetry) -> FileCheckpointer:
    """Checkpointer writing into a temporary directory"""
    return FileCheckpointer(orders_dir=orders_dir, telemetry=mock_telemetry)


@pytest.fixture
def fulfillment_service(repository, checkpointer) -> FulfillmentService:
    """Coordinator wired to the mock store and temporary volume"""
    return FulfillmentService(repository=repository, checkpointer=checkpointer)
