"""Notification sinks - where emitted intents go for email/SMS delivery"""

import asyncio
import logging
from typing import List, Protocol

import httpx

from credit_ledger.config import settings
from credit_ledger.domain.models import NotificationIntent
from credit_ledger.infrastructure.observability.metrics import (
    notification_failure_counter,
    webhook_latency_histogram,
)

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Fire-and-forget consumer of notification intents"""

    async def send(self, intent: NotificationIntent) -> None:
        ...


class WebhookNotificationSink:
    """Posts intents to the notification dispatcher with retry"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None, max_retries: int | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries or settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def send(self, intent: NotificationIntent) -> None:
        """
        Deliver one intent to the dispatcher.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx errors and network failures
        - Re-raises after the last attempt; the caller decides whether that matters
        """
        attempt = 0
        async with httpx.AsyncClient() as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=intent.to_payload(),
                            timeout=self.timeout,
                        )
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1

                    if attempt >= self.max_retries:
                        notification_failure_counter.inc()
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)


class LoggingNotificationSink:
    """Writes intents to the log; used when no dispatcher is configured"""

    async def send(self, intent: NotificationIntent) -> None:
        logger.info("Notification intent", extra=intent.to_payload())


class RecordingNotificationSink:
    """Keeps intents in memory, for dry runs and tests"""

    def __init__(self):
        self.sent: List[NotificationIntent] = []

    async def send(self, intent: NotificationIntent) -> None:
        self.sent.append(intent)


async def deliver_quietly(sink: NotificationSink, intent: NotificationIntent) -> bool:
    """Send an intent after the response has gone out; failures are logged, not raised"""
    try:
        await sink.send(intent)
        return True
    except Exception:
        logger.exception(
            "Notification delivery failed",
            extra={"kind": intent.kind.value, "customer_id": intent.customer_id},
        )
        return False
