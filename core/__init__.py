#!/usr/bin/env python3
"""
Core Module for the Fulfill Order Service

Shared infrastructure components used by the microservice.

COMPONENTS:
    - config/: Dataclass configuration loaded from the environment (python-dotenv)
    - logger.py: Process-wide logging setup
    - appinsights_client.py: Buffered Application Insights telemetry client

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("fulfillorder_service")
"""

__version__ = "1.0.0"
