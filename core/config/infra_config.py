#!/usr/bin/env python3
"""Order store configuration

MongoDB / Azure Cosmos DB (Mongo API) connection settings for the
fulfillment service.
"""
import os
from dataclasses import dataclass
from typing import List, Optional

COSMOS_DOMAIN = "documents.azure.com"
COSMOS_PORT = 10255


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class InfraConfig:
    """Order store endpoint and driver settings"""

    # ===========================================
    # MongoDB / Cosmos DB
    # ===========================================
    mongo_host: Optional[str] = None
    mongo_user: Optional[str] = None
    mongo_password: Optional[str] = None
    mongo_database: str = "akschallenge"
    mongo_collection: str = "orders"
    mongo_pool_limit: int = 25
    mongo_timeout_seconds: float = 60.0
    mongo_unsafe_writes: bool = True

    @property
    def is_cosmos_db(self) -> bool:
        return bool(self.mongo_host) and COSMOS_DOMAIN in self.mongo_host

    @property
    def store_kind(self) -> str:
        """Store name reported in telemetry"""
        return "CosmosDB" if self.is_cosmos_db else "MongoDB"

    @property
    def use_tls(self) -> bool:
        return self.is_cosmos_db

    @property
    def address(self) -> Optional[str]:
        """host:port to dial; Cosmos DB hosts default to the TLS port"""
        if not self.mongo_host:
            return None
        if self.is_cosmos_db and ":" not in self.mongo_host:
            return f"{self.mongo_host}:{COSMOS_PORT}"
        return self.mongo_host

    def missing_required(self) -> List[str]:
        """Names of required variables that are not set"""
        required = {
            "MONGOHOST": self.mongo_host,
            "MONGOUSER": self.mongo_user,
            "MONGOPASSWORD": self.mongo_password,
        }
        return [name for name, value in required.items() if not value]

    @classmethod
    def from_env(cls) -> 'InfraConfig':
        """Load order store config from environment"""
        return cls(
            mongo_host=os.getenv("MONGOHOST") or None,
            mongo_user=os.getenv("MONGOUSER") or None,
            mongo_password=os.getenv("MONGOPASSWORD") or None,
            mongo_database=os.getenv("MONGO_DATABASE", "akschallenge"),
            mongo_collection=os.getenv("MONGO_COLLECTION", "orders"),
            mongo_pool_limit=_int(os.getenv("MONGOPOOL_LIMIT", "25"), 25),
            mongo_unsafe_writes=_bool(os.getenv("MONGO_UNSAFE_WRITES", "true")),
        )
