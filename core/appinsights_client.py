"""
Application Insights Client

Buffered, fire-and-forget telemetry client for the Application Insights
ingestion endpoint. Items are wrapped in v2 envelopes, buffered in memory and
posted in batches by a background flush loop.

Failures to deliver are logged and dropped; tracking never raises.

Usage:
    client = AppInsightsClient("00000000-0000-0000-0000-000000000000")
    await client.start(flush_interval=10.0)
    client.track_event("FulfillOrder fileshare", {"orderId": "..."})
    await client.close()
"""

import asyncio
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://dc.services.visualstudio.com/v2/track"


def format_duration(seconds: float) -> str:
    """Format seconds as the d.hh:mm:ss.ffffff timespan Application Insights expects"""
    micros = max(int(round(seconds * 1_000_000)), 0)
    total_seconds, micros = divmod(micros, 1_000_000)
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return f"{days}.{hours:02d}:{minutes:02d}:{secs:02d}.{micros:06d}"


def _utc_iso(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class AppInsightsClient:
    """Single Application Insights sink bound to one instrumentation key"""

    def __init__(
        self,
        instrumentation_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        cloud_role: Optional[str] = None,
        max_batch_size: int = 100,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.instrumentation_key = instrumentation_key
        self.endpoint = endpoint
        self.cloud_role = cloud_role
        self.max_batch_size = max_batch_size

        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._buffer: List[Dict[str, Any]] = []
        self._flush_task: Optional[asyncio.Task] = None
        self._batch_flush: Optional[asyncio.Task] = None

    # =========================================================================
    # Tracking
    # =========================================================================

    def track_event(self, name: str, properties: Optional[Dict[str, str]] = None):
        """Track a named custom event"""
        self._enqueue("Event", "EventData", {
            "ver": 2,
            "name": name,
            "properties": dict(properties or {}),
        })

    def track_exception(self, error: BaseException, properties: Optional[Dict[str, str]] = None):
        """Track a handled exception"""
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._enqueue("Exception", "ExceptionData", {
            "ver": 2,
            "severityLevel": 3,
            "exceptions": [{
                "typeName": type(error).__name__,
                "message": str(error) or type(error).__name__,
                "hasFullStack": error.__traceback__ is not None,
                "stack": stack,
            }],
            "properties": dict(properties or {}),
        })

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
        """Track an incoming request; success is derived from the response code"""
        self._enqueue("Request", "RequestData", {
            "ver": 2,
            "id": uuid.uuid4().hex,
            "name": name or f"{method} {url}",
            "url": url,
            "duration": format_duration(duration_seconds),
            "responseCode": response_code,
            "success": response_code.startswith(("2", "3")),
            "properties": dict(properties or {}),
        }, time=start_time)

    def _enqueue(self, item_type: str, base_type: str, base_data: Dict[str, Any], time: Optional[datetime] = None):
        envelope = {
            "name": f"Microsoft.ApplicationInsights.{self.instrumentation_key.replace('-', '')}.{item_type}",
            "time": _utc_iso(time),
            "iKey": self.instrumentation_key,
            "tags": {"ai.cloud.role": self.cloud_role} if self.cloud_role else {},
            "data": {"baseType": base_type, "baseData": base_data},
        }
        self._buffer.append(envelope)

        if len(self._buffer) >= self.max_batch_size:
            self._schedule_flush()

    def _schedule_flush(self):
        # One batch flush in flight at a time; it takes everything buffered when it runs
        if self._batch_flush is not None and not self._batch_flush.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the periodic or shutdown flush picks the items up
            return
        self._batch_flush = loop.create_task(self.flush())

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    # =========================================================================
    # Delivery
    # =========================================================================

    async def flush(self) -> int:
        """
        Post all buffered envelopes

        Returns:
            Number of envelopes accepted by the endpoint (0 on failure)
        """
        if not self._buffer:
            return 0

        batch, self._buffer = self._buffer, []
        try:
            response = await self._client.post(self.endpoint, json=batch)
            response.raise_for_status()
            logger.debug(f"Sent {len(batch)} telemetry items to {self.endpoint}")
            return len(batch)
        except httpx.HTTPStatusError as e:
            logger.warning(f"Telemetry endpoint rejected {len(batch)} items: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to send {len(batch)} telemetry items: {e}")
        return 0

    async def _flush_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            await self.flush()

    async def start(self, flush_interval: float = 10.0):
        """Start the periodic flush loop"""
        if self._flush_task is None:
            self._flush_task = asyncio.create_task(self._flush_loop(flush_interval))

    async def close(self):
        """Stop the flush loop, deliver what is left and release the HTTP client"""
        if self._flush_task is not None:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None

        if self._batch_flush is not None:
            await asyncio.gather(self._batch_flush, return_exceptions=True)
            self._batch_flush = None
        await self.flush()
        await self._client.aclose()
