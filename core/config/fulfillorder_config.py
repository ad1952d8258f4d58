#!/usr/bin/env python3
"""Fulfillment service main configuration

Combines all sub-configs for the order fulfillment microservice.
"""
import os
from dataclasses import dataclass, field
from typing import List

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .telemetry_config import TelemetryConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class FulfillOrderConfig:
    """Main fulfillment service configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Service bind address
    host: str = "0.0.0.0"
    port: int = 8080

    # Shared volume receiving one checkpoint file per fulfilled order
    orders_dir: str = "/orders"

    # Phase 1 retry policy
    store_retry_attempts: int = 3
    store_retry_wait_seconds: float = 3.0

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    def missing_required(self) -> List[str]:
        missing = self.infrastructure.missing_required()
        if not self.telemetry.challenge_key:
            missing.append("CHALLENGEAPPINSIGHTS_KEY")
        return missing

    @classmethod
    def from_env(cls) -> 'FulfillOrderConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "false")),

            host=os.getenv("HOST", "0.0.0.0"),
            port=_int(os.getenv("PORT", "8080"), 8080),

            orders_dir=os.getenv("ORDERS_DIR", "/orders"),

            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            telemetry=TelemetryConfig.from_env(),
        )
