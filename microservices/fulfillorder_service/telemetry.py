"""
Fulfill Order Telemetry

Mirrors every telemetry item to the challenge sink and, when configured, the
custom sink. All items carry the team label. Emission is fire-and-forget:
errors are logged and never reach the caller.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from core.appinsights_client import AppInsightsClient
from core.config import TelemetryConfig

logger = logging.getLogger(__name__)

SERVICE_NAME = "FulfillOrder"


class TelemetryEmitter:
    """Fan-out over the configured Application Insights sinks"""

    def __init__(self, sinks: List[AppInsightsClient], team_name: str = "", flush_interval: float = 10.0):
        self.sinks = sinks
        self.team_name = team_name
        self.flush_interval = flush_interval

    @classmethod
    def from_config(cls, config: TelemetryConfig) -> 'TelemetryEmitter':
        sinks = []
        for label, key in (("challenge", config.challenge_key), ("custom", config.custom_key)):
            if not key:
                # Missing keys are reported once at startup with the other required variables
                continue
            sinks.append(AppInsightsClient(
                instrumentation_key=key,
                endpoint=config.endpoint,
                cloud_role=config.cloud_role,
                max_batch_size=config.max_batch_size,
                timeout=config.timeout_seconds,
            ))
            logger.info(f"Telemetry sink '{label}' enabled")
        return cls(sinks, team_name=config.team_name, flush_interval=config.flush_interval_seconds)

    def _with_team(self, properties: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = {"team": self.team_name}
        merged.update(properties or {})
        return merged

    def _fan_out(self, method: str, *args, **kwargs):
        for sink in self.sinks:
            try:
                getattr(sink, method)(*args, **kwargs)
            except Exception as e:
                logger.warning(f"Dropping telemetry item ({method}): {e}")

    def track_event(self, name: str, properties: Optional[Dict[str, str]] = None):
        self._fan_out("track_event", name, self._with_team(properties))

    def track_exception(self, error: BaseException, properties: Optional[Dict[str, str]] = None):
        self._fan_out("track_exception", error, self._with_team(properties))

    def track_request(
        self,
        method: str,
        url: str,
        start_time: datetime,
        duration_seconds: float,
        response_code: str,
        name: Optional[str] = None,
        properties: Optional[Dict[str, str]] = None,
    ):
        self._fan_out(
            "track_request",
            method,
            url,
            start_time,
            duration_seconds,
            response_code,
            name=name,
            properties=self._with_team(properties),
        )

    async def start(self):
        for sink in self.sinks:
            await sink.start(self.flush_interval)

    async def close(self):
        for sink in self.sinks:
            await sink.close()
