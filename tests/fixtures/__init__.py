"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - common.py: Base ID generators, timestamps
    - order_fixtures.py: Order documents and request bodies
"""

# Common utilities
from .common import (
    make_order_id,
    make_email,
    make_timestamp,
)

# Order fixtures
from .order_fixtures import (
    make_order,
    make_order_document,
    make_fulfillment_body,
)

__all__ = [
    "make_order_id",
    "make_email",
    "make_timestamp",
    "make_order",
    "make_order_document",
    "make_fulfillment_body",
]
