"""Per-site polling loop."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any, Mapping

import httpx

from storewatch.ingest.models import Destination, MinimalProduct, Site
from storewatch.ingest.shopify import ShopifyClient, available_count, parse_feed, to_minimal, to_presentational
from storewatch.jobs.delivery import deliver
from storewatch.jobs.signals import InvalidRegistry, SignalBus, SiteOffline, SiteOnline, SiteStopped
from storewatch.logic.diff import ProductEvent, ProductEventKind, detect_events
from storewatch.message.render import PasswordState, render_password_message, render_product_message
from storewatch.utils.webhook import WebhookClient

logger = logging.getLogger(__name__)


class SiteMonitor:
    def __init__(
        self,
        site: Site,
        *,
        shopify: ShopifyClient,
        webhooks: WebhookClient,
        registry: InvalidRegistry,
        signals: SignalBus,
    ) -> None:
        self.site = site
        self.shopify = shopify
        self.webhooks = webhooks
        self.registry = registry
        self.signals = signals
        # Pruned locally; the configured site is left untouched.
        self.restock = list(site.restock)
        self.password_up = list(site.password_up)
        self.password_down = list(site.password_down)
        self.previous: list[MinimalProduct] | None = None
        self.password_page = False
        self.rate_limited = False
        self.online = True
        self.seen_invalid = 0
        self.pending: set[asyncio.Task] = set()
        self.outcomes: Counter[str] = Counter()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self.site.delay / 1000
        deadline = loop.time()
        logger.info("Monitoring %s every %sms", self.site.name, self.site.delay)
        while await self.tick():
            deadline += interval
            now = loop.time()
            if deadline > now:
                await asyncio.sleep(deadline - now)
            else:
                # Missed ticks are skipped.
                deadline = now

    async def tick(self) -> bool:
        """Poll once. Returns False once the monitor has nothing left to deliver to."""
        if not self.prune():
            logger.warning("No valid webhooks left for %s, stopping", self.site.name)
            await self.signals.emit(SiteStopped(self.site.name))
            return False
        try:
            response = await self.shopify.fetch_products(self.site.url)
        except httpx.HTTPError as exc:
            logger.debug("Failed to GET %s: %s", self.site.url, exc)
            if self.online:
                self.online = False
                logger.warning("%s is unreachable", self.site.name)
                await self.signals.emit(SiteOffline(self.site.name))
            return True
        if not self.online:
            self.online = True
            logger.info("%s is reachable again", self.site.name)
            await self.signals.emit(SiteOnline(self.site.name))

        if response.status_code == 200:
            self._on_products(response)
        elif response.status_code == 401:
            if not self.password_page:
                self.password_page = True
                logger.info("%s: Password Page Up!", self.site.name)
                self._password_event(PasswordState.UP, self.password_up)
        elif response.status_code == 429:
            if not self.rate_limited:
                self.rate_limited = True
                logger.warning("Rate limit reached for %s", self.site.name)
        return True

    def prune(self) -> bool:
        """Drop destinations registered as invalid since the last tick."""
        for url in self.registry.since(self.seen_invalid):
            for destinations in (self.restock, self.password_up, self.password_down):
                destinations[:] = [d for d in destinations if d.url != url]
            self.seen_invalid += 1
        return bool(self.restock or self.password_up or self.password_down)

    def _on_products(self, response: httpx.Response) -> None:
        if self.password_page:
            self.password_page = False
            logger.info("%s: Password Page Down!", self.site.name)
            self._password_event(PasswordState.DOWN, self.password_down)
        self.rate_limited = False
        try:
            products = parse_feed(response.json())
        except ValueError as exc:
            logger.debug("Failed to parse products for %s: %s", self.site.url, exc)
            return
        for event in detect_events(self.previous, products):
            self._product_event(event)
        self.previous = to_minimal(products)

    def _product_event(self, event: ProductEvent) -> None:
        product = to_presentational(event.product)
        if event.kind is ProductEventKind.RESTOCK:
            logger.info("%s: `%s` restocked!", self.site.name, product.title)
        else:
            logger.info("%s: `%s` was added!", self.site.name, product.title)
        available = available_count(event.product)
        for destination in self.restock:
            if event.kind is ProductEventKind.RESTOCK and available < destination.settings.minimum:
                logger.debug(
                    "Skipping %s for %s: %s available, minimum %s",
                    product.title,
                    destination.name,
                    available,
                    destination.settings.minimum,
                )
                continue
            message = render_product_message(self.site, product, event.kind, destination.settings)
            self._spawn(destination, message)

    def _password_event(self, state: PasswordState, destinations: list[Destination]) -> None:
        for destination in destinations:
            self._spawn(destination, render_password_message(self.site, state, destination.settings))

    def _spawn(self, destination: Destination, message: Mapping[str, Any]) -> None:
        task = asyncio.create_task(
            deliver(self.webhooks, destination, message, registry=self.registry, signals=self.signals)
        )
        self.pending.add(task)
        task.add_done_callback(self._delivered)

    def _delivered(self, task: asyncio.Task) -> None:
        self.pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Webhook delivery for %s failed", self.site.name, exc_info=exc)
            return
        status = task.result()
        self.outcomes[status.value if status is not None else "skipped"] += 1

    async def drain(self) -> None:
        """Wait for every delivery spawned so far."""
        while self.pending:
            await asyncio.gather(*list(self.pending), return_exceptions=True)

    def cancel(self) -> None:
        for task in list(self.pending):
            task.cancel()
