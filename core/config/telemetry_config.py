#!/usr/bin/env python3
"""Application Insights telemetry configuration"""
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_INGESTION_ENDPOINT = "https://dc.services.visualstudio.com/v2/track"


def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class TelemetryConfig:
    """Telemetry sinks and shared properties"""
    challenge_key: Optional[str] = None
    custom_key: Optional[str] = None
    team_name: str = ""
    cloud_role: str = "fulfillorder"
    endpoint: str = DEFAULT_INGESTION_ENDPOINT
    flush_interval_seconds: float = 10.0
    max_batch_size: int = 100
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> 'TelemetryConfig':
        """Load telemetry config from environment variables"""
        return cls(
            challenge_key=os.getenv("CHALLENGEAPPINSIGHTS_KEY") or None,
            custom_key=os.getenv("APPINSIGHTS_KEY") or None,
            team_name=os.getenv("TEAMNAME", ""),
            endpoint=os.getenv("APPINSIGHTS_ENDPOINT", DEFAULT_INGESTION_ENDPOINT),
            flush_interval_seconds=_float(os.getenv("TELEMETRY_FLUSH_INTERVAL", "10"), 10.0),
        )
