"""Signals exchanged between site monitors and the supervisor."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

SIGNALS_PER_SITE = 5


@dataclass(slots=True, frozen=True)
class SiteOnline:
    site: str


@dataclass(slots=True, frozen=True)
class SiteOffline:
    site: str


@dataclass(slots=True, frozen=True)
class WebhookInvalid:
    url: str


@dataclass(slots=True, frozen=True)
class SiteStopped:
    site: str


@dataclass(slots=True, frozen=True)
class MonitorQuit:
    reason: str


Signal = SiteOnline | SiteOffline | WebhookInvalid | SiteStopped | MonitorQuit


class SignalError(RuntimeError):
    pass


class SignalBus:
    """Bounded many-producer, single-consumer signal queue."""

    def __init__(self, site_count: int) -> None:
        self._queue: asyncio.Queue[Signal] = asyncio.Queue(maxsize=SIGNALS_PER_SITE * max(site_count, 1))
        self._closed = False

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    async def emit(self, signal: Signal) -> None:
        if self._closed:
            raise SignalError(f"Supervisor is gone, cannot deliver {signal!r}")
        await self._queue.put(signal)

    async def receive(self) -> Signal:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class InvalidRegistry:
    """Append-only list of webhook URLs that must not be used again.

    Monitors remember how far into the list they have already pruned and only
    look at the entries added since.
    """

    def __init__(self) -> None:
        self._urls: list[str] = []

    def add(self, url: str) -> bool:
        if url in self._urls:
            return False
        self._urls.append(url)
        return True

    def since(self, index: int) -> list[str]:
        return self._urls[index:]

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)
