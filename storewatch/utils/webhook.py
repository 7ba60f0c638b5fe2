"""Discord-style webhook delivery."""

from __future__ import annotations

import enum
import logging
import math
import os
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", 30.0))


class Status(enum.Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class SendResult:
    status: Status
    retry_after: float | None = None


SUCCESS_CODES = {200, 204}
INVALID_CODES = {201, 404}


class WebhookClient:
    def __init__(self, *, session: httpx.AsyncClient | None = None) -> None:
        self._session = session or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def close(self) -> None:
        await self._session.aclose()

    async def send(self, url: str, message: Mapping[str, Any]) -> SendResult:
        """POST one message and classify the response. Never retries."""
        try:
            response = await self._session.post(url, json=message)
        except httpx.HTTPError as exc:
            logger.debug("Error sending webhook to %s: %s", url, exc)
            return SendResult(Status.UNKNOWN)
        logger.debug("Sent webhook to %s, status %s", url, response.status_code)
        return classify(response)


def classify(response: httpx.Response) -> SendResult:
    code = response.status_code
    if code in SUCCESS_CODES:
        return SendResult(Status.SUCCESS)
    if code in INVALID_CODES:
        return SendResult(Status.INVALID)
    if code == 429:
        return SendResult(Status.RATE_LIMIT, _retry_after(response))
    return SendResult(Status.UNKNOWN)


def _retry_after(response: httpx.Response) -> float | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, Mapping):
        return None
    value = body.get("retry_after")
    if isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return max(seconds, 0.0)
