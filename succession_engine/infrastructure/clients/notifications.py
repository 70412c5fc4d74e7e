"""Estate event notification client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import List
from succession_engine.config import settings
from succession_engine.domain.events import DomainEvent
from succession_engine.infrastructure.observability.metrics import (
    notification_latency_histogram,
    notification_failure_counter,
)


class NotificationClient:
    """Client for delivering domain events to the notification webhook"""

    def __init__(self, webhook_url: str | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds

    async def publish(self, events: List[DomainEvent]) -> None:
        """
        Deliver drained outbox events in order, one POST per event.

        A failing event is logged and counted once its retries are exhausted;
        delivery continues with the next event so one bad payload does not hold
        back the rest of the batch.
        """
        async with httpx.AsyncClient() as client:
            for event in events:
                try:
                    await self._send(client, event)
                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    logging.error(
                        f"Notification delivery failed: {e}",
                        extra={
                            "event_id": event.event_id,
                            "event_type": event.event_type.value,
                            "aggregate_id": event.aggregate_id,
                        },
                    )

    async def _send(self, client: httpx.AsyncClient, event: DomainEvent) -> None:
        """
        Send one event with retry logic.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1) (1s, 2s, 4s, 8s with base 1s)
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter
        """
        attempt = 0
        while attempt < self.max_retries:
            try:
                with notification_latency_histogram.time():
                    response = await client.post(
                        self.webhook_url,
                        json=event.to_dict(),
                        timeout=self.timeout,
                    )
                    response.raise_for_status()
                    return  # Success

            except httpx.HTTPStatusError as e:
                attempt += 1
                notification_failure_counter.inc()
                if e.response.status_code < 500 or attempt >= self.max_retries:
                    raise

            except httpx.RequestError:
                attempt += 1
                notification_failure_counter.inc()
                if attempt >= self.max_retries:
                    raise

            backoff = self.backoff_base * (2 ** (attempt - 1))
            await asyncio.sleep(backoff)
