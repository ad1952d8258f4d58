"""
File Checkpointer

Writes proof of fulfillment as `<orders_dir>/<orderId>.json` on the shared
volume. A checkpoint only counts once the file contents and its directory
entry have been fsynced.
"""

import asyncio
import json
import logging
import os
import tempfile

from .models import OrderStatus
from .protocols import TelemetryProtocol
from .telemetry import SERVICE_NAME

logger = logging.getLogger(__name__)

ARTIFACT_MODE = 0o666


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class FileCheckpointer:
    """Durable per-order artifact writer"""

    def __init__(self, orders_dir: str, telemetry: TelemetryProtocol):
        self.orders_dir = orders_dir
        self.telemetry = telemetry
        # mkstemp creates 0600; other readers of the shared volume need the usual create mode
        self.file_mode = ARTIFACT_MODE & ~_current_umask()

    def path_for(self, order_id: str) -> str:
        return os.path.join(self.orders_dir, f"{order_id}.json")

    @staticmethod
    def payload_for(order_id: str) -> bytes:
        return json.dumps({"orderid": order_id, "status": OrderStatus.PROCESSED.value}).encode("utf-8")

    async def checkpoint(self, order_id: str) -> bool:
        """
        Write and sync the order artifact

        Args:
            order_id: Order id used verbatim in the file name

        Returns:
            True once the artifact is on stable storage, False on any I/O error
        """
        path = self.path_for(order_id)
        try:
            await asyncio.to_thread(self._write_durably, path, self.payload_for(order_id))
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            self.telemetry.track_exception(e, {"orderId": order_id})
            return False

        logger.info(f"Order {order_id} written to {path}")
        self.telemetry.track_event(f"{SERVICE_NAME} fileshare", {
            "service": SERVICE_NAME,
            "sequence": "5",
            "type": "fileshare",
            "orderId": order_id,
        })
        return True

    def _write_durably(self, path: str, payload: bytes):
        # Last writer wins: duplicate requests replace the file with the same payload
        fd, tmp_path = tempfile.mkstemp(dir=self.orders_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                os.fchmod(f.fileno(), self.file_mode)
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
        self._sync_directory()

    def _sync_directory(self):
        dir_fd = os.open(self.orders_dir, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
