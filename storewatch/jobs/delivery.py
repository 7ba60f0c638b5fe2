"""Delivery of one message to one destination."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from storewatch.ingest.models import Destination
from storewatch.jobs.signals import InvalidRegistry, SignalBus, WebhookInvalid
from storewatch.utils.webhook import Status, WebhookClient

logger = logging.getLogger(__name__)


async def deliver(
    client: WebhookClient,
    destination: Destination,
    message: Mapping[str, Any],
    *,
    registry: InvalidRegistry,
    signals: SignalBus,
) -> Status | None:
    """Send until the webhook answers with something other than a timed rate limit.

    Returns the final status, or None when the destination was already known to
    be invalid and nothing was sent.
    """
    url = destination.url
    while True:
        if url in registry:
            logger.debug("Skipping invalid webhook %s (%s)", destination.name, url)
            return None
        result = await client.send(url, message)
        if result.status is Status.RATE_LIMIT and result.retry_after is not None:
            logger.debug("Rate limited by %s, retrying in %ss", destination.name, result.retry_after)
            await asyncio.sleep(result.retry_after)
            continue
        if result.status is Status.RATE_LIMIT:
            logger.warning("Rate limited by %s without retry_after, dropping message", destination.name)
        elif result.status is Status.INVALID:
            logger.warning("Invalid webhook %s: %s", destination.name, url)
            registry.add(url)
            await signals.emit(WebhookInvalid(url))
        elif result.status is Status.UNKNOWN:
            logger.warning("Failed to deliver webhook to %s", destination.name)
        return result.status
