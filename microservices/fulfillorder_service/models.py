"""
Fulfill Order Service Data Models

Pydantic models for the order document, the fulfillment request/response
envelopes and the outcome of each fulfillment phase.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Order status as stored in the order collection"""
    OPEN = "Open"
    PROCESSED = "Processed"


class StoreOutcome(str, Enum):
    """Result of the compare-and-set transition in the order store"""
    FULFILLED = "fulfilled"
    ALREADY_PROCESSED = "already_processed"
    STORE_UNAVAILABLE = "store_unavailable"

    @property
    def is_terminal(self) -> bool:
        """Terminal outcomes stop upstream redelivery of the store phase"""
        return self is not StoreOutcome.STORE_UNAVAILABLE


def is_valid_order_id(order_id: Any) -> bool:
    """Order ids are 24-character hex ObjectId strings"""
    return isinstance(order_id, str) and len(order_id) == 24 and ObjectId.is_valid(order_id)


# Core Order Model

class Order(BaseModel):
    """Order document in the order store"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order_id: str = Field(..., alias="_id")
    email_address: Optional[str] = Field(None, alias="emailAddress")
    preferred_language: Optional[str] = Field(None, alias="preferredLanguage")
    product: Optional[str] = None
    partition: Optional[str] = None
    total: Decimal = Field(Decimal("0"), ge=0)
    source: Optional[str] = None
    status: OrderStatus = OrderStatus.OPEN

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'Order':
        data = dict(document)
        data["_id"] = str(data.get("_id"))
        return cls.model_validate(data)

    def to_document(self) -> Dict[str, Any]:
        """Document shape as persisted, with a native ObjectId key"""
        document = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        document["_id"] = ObjectId(self.order_id)
        document["total"] = float(self.total)
        return document


# Request / Response Models

class FulfillmentRequest(BaseModel):
    """Inbound fulfillment request body"""
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")


class FulfillmentResult(BaseModel):
    """Outcome of both fulfillment phases for one order"""
    order_id: str
    processed_in_store: bool = False
    written_to_file_system: bool = False

    @property
    def success(self) -> bool:
        return self.processed_in_store and self.written_to_file_system


def _flag(value: bool) -> str:
    return "true" if value else "false"


class FulfillmentResponse(BaseModel):
    """Wire envelope; flags are lowercase strings for compatibility with existing consumers"""
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")
    processed_in_mongodb: str = Field(..., alias="processedInMongoDB")
    written_to_file_system: str = Field(..., alias="writtenToFileSystem")

    @classmethod
    def from_result(cls, result: FulfillmentResult) -> 'FulfillmentResponse':
        return cls(
            order_id=result.order_id,
            processed_in_mongodb=_flag(result.processed_in_store),
            written_to_file_system=_flag(result.written_to_file_system),
        )

    @classmethod
    def rejected(cls, order_id: str = "") -> 'FulfillmentResponse':
        return cls.from_result(FulfillmentResult(order_id=order_id))
