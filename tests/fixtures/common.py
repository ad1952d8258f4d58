"""
Common/Shared Fixtures

Base factories and generators used across multiple tests.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId


def make_order_id() -> str:
    """Generate a unique 24-character hex order ID"""
    return str(ObjectId())


def make_email(prefix: Optional[str] = None) -> str:
    """Generate a unique email"""
    prefix = prefix or f"test_{uuid.uuid4().hex[:8]}"
    return f"{prefix}@example.com"


def make_timestamp() -> str:
    """Generate current UTC timestamp"""
    return datetime.now(timezone.utc).isoformat()
