#!/usr/bin/env python3
"""
Service logger setup

Configures the root logging handlers once per process from LoggingConfig and
returns the named service logger.

USAGE:
    from core.logger import setup_service_logger
    logger = setup_service_logger("fulfillorder_service")
"""
import logging
import sys
from typing import Optional

from core.config import LoggingConfig

_configured = False


def setup_service_logger(service_name: str, config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure logging for a service and return its logger

    Args:
        service_name: Logger name, usually the service package name
        config: Logging config (defaults to environment)

    Returns:
        Logger for the service
    """
    global _configured
    config = config or LoggingConfig.from_env()

    if not _configured:
        root = logging.getLogger()
        root.setLevel(config.log_level.upper())
        formatter = logging.Formatter(config.log_format)

        if config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)

        if config.log_file:
            file_handler = logging.FileHandler(config.log_file)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        _configured = True

    return logging.getLogger(service_name)
