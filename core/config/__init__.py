#!/usr/bin/env python3
"""Modular configuration system for the fulfillment service

Configuration hierarchy:
- infra_config: Order store (MongoDB / Cosmos DB)
- telemetry_config: Application Insights sinks
- logging_config: Logging configuration
- fulfillorder_config: Service settings combining the above
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .telemetry_config import TelemetryConfig
from .fulfillorder_config import FulfillOrderConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = FulfillOrderConfig.from_env()

def get_settings() -> FulfillOrderConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> FulfillOrderConfig:
    """Reload settings from environment"""
    global settings
    settings = FulfillOrderConfig.from_env()
    return settings

__all__ = [
    # Main config
    'FulfillOrderConfig',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'InfraConfig',
    'TelemetryConfig',
]
