"""Outbound payloads for the notification and export collaborators.

The engine only produces payloads; delivery belongs to the sinks. Moderation
notifications are best-effort and at-most-once. Payout exports raise
``ExportDeliveryError`` so the caller can retry them independently.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from engagement_engine.core.errors import ExportDeliveryError
from engagement_engine.core.settings import Settings, settings

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Receives moderation notification payloads."""

    def send(self, payload: Mapping[str, Any]) -> None: ...


class ExportSink(Protocol):
    """Receives signed payout CSV exports."""

    def deliver(self, *, batch_id: int, period_id: str, csv_bytes: bytes, sha256: str) -> None: ...


class NullNotificationSink:
    """Drops notifications when no sink is configured."""

    def send(self, payload: Mapping[str, Any]) -> None:
        logger.debug("No notification sink configured; dropping %s", payload.get("event"))


class UnconfiguredExportSink:
    """Fails every delivery so batches stay CLOSED until a sink exists."""

    def deliver(self, *, batch_id: int, period_id: str, csv_bytes: bytes, sha256: str) -> None:
        raise ExportDeliveryError("No export sink configured")


class HttpNotificationSink:
    """POSTs notification payloads as JSON."""

    def __init__(self, url: str, timeout_seconds: float = 10.0) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds

    def send(self, payload: Mapping[str, Any]) -> None:
        with httpx.Client(timeout=self.timeout_seconds) as client:
            response = client.post(self.url, json=dict(payload))
            response.raise_for_status()


class HttpExportSink:
    """POSTs payout CSVs with the batch id and digest in headers."""

    def __init__(self, url: str, timeout_seconds: float = 10.0) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds

    def deliver(self, *, batch_id: int, period_id: str, csv_bytes: bytes, sha256: str) -> None:
        headers = {
            "Content-Type": "text/csv",
            "X-Payout-Batch-Id": str(batch_id),
            "X-Payout-Period": period_id,
            "X-Content-SHA256": sha256,
        }
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(self.url, content=csv_bytes, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExportDeliveryError(f"Export of batch {batch_id} failed: {exc}") from exc


class Notifier:
    """Best-effort wrapper: delivery failures are logged, never raised."""

    def __init__(self, sink: NotificationSink) -> None:
        self.sink = sink

    def notify(self, payload: Mapping[str, Any]) -> bool:
        try:
            self.sink.send(payload)
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Notification %s not delivered: %s", payload.get("event"), exc)
            return False
        except Exception:
            logger.warning(
                "Notification %s not delivered: sink raised", payload.get("event"), exc_info=True
            )
            return False
        return True


def get_notification_sink(config: Settings = settings) -> NotificationSink:
    """Return the configured notification sink."""
    if config.notification_sink_url:
        return HttpNotificationSink(config.notification_sink_url, config.sink_timeout_seconds)
    return NullNotificationSink()


def get_export_sink(config: Settings = settings) -> ExportSink:
    """Return the configured export sink."""
    if config.export_sink_url:
        return HttpExportSink(config.export_sink_url, config.sink_timeout_seconds)
    return UnconfiguredExportSink()
