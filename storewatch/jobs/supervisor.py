"""Supervisor owning every site monitor."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Sequence

from dotenv import load_dotenv

from storewatch.ingest import ConfigError, load_sites
from storewatch.ingest.models import Site
from storewatch.ingest.shopify import ShopifyClient
from storewatch.jobs.monitor import SiteMonitor
from storewatch.jobs.signals import (
    InvalidRegistry,
    MonitorQuit,
    Signal,
    SignalBus,
    SiteOffline,
    SiteOnline,
    SiteStopped,
    WebhookInvalid,
)
from storewatch.utils.webhook import WebhookClient

logger = logging.getLogger(__name__)

NO_VALID_WEBHOOKS = "No valid webhooks!"


class Supervisor:
    def __init__(
        self,
        sites: Sequence[Site],
        *,
        shopify: ShopifyClient,
        webhooks: WebhookClient,
        registry: InvalidRegistry | None = None,
    ) -> None:
        self.sites = list(sites)
        self.registry = registry or InvalidRegistry()
        self.signals = SignalBus(len(self.sites))
        self.monitors = [
            SiteMonitor(site, shopify=shopify, webhooks=webhooks, registry=self.registry, signals=self.signals)
            for site in self.sites
        ]
        self.delivering = len(self.monitors)
        self.offline = 0

    async def run(self) -> str:
        """Run every monitor until a `MonitorQuit`; returns its reason."""
        if not self.monitors:
            return NO_VALID_WEBHOOKS
        tasks = [
            asyncio.create_task(self._run_monitor(monitor), name=f"monitor:{monitor.site.name}")
            for monitor in self.monitors
        ]
        logger.info("Monitoring %s stores...", len(tasks))
        try:
            while True:
                quit_signal = await self.handle(await self.signals.receive())
                if quit_signal is not None:
                    logger.info("Stopping: %s", quit_signal.reason)
                    return quit_signal.reason
        finally:
            self.signals.close()
            for task in tasks:
                task.cancel()
            for monitor in self.monitors:
                monitor.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_monitor(self, monitor: SiteMonitor) -> None:
        try:
            await monitor.run()
        except Exception:
            logger.exception("Monitor for %s crashed", monitor.site.name)
            await self.signals.emit(SiteStopped(monitor.site.name))

    async def handle(self, signal: Signal) -> MonitorQuit | None:
        if isinstance(signal, MonitorQuit):
            return signal
        if isinstance(signal, WebhookInvalid):
            if self.registry.add(signal.url):
                logger.info("Disabled webhook %s", signal.url)
        elif isinstance(signal, SiteStopped):
            self.delivering = max(self.delivering - 1, 0)
            if self.delivering == 0:
                return MonitorQuit(NO_VALID_WEBHOOKS)
        elif isinstance(signal, SiteOffline):
            self.offline += 1
            if self.offline == len(self.sites):
                logger.error("No sites are reachable, check your Internet connection")
        elif isinstance(signal, SiteOnline):
            was_offline = self.offline
            self.offline = max(self.offline - 1, 0)
            if was_offline and not self.offline:
                logger.info("Connection recovered")
        return None


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


async def run_monitors(config_path: str | None = None) -> str:
    sites = load_sites(config_path)
    shopify = ShopifyClient()
    webhooks = WebhookClient()
    try:
        return await Supervisor(sites, shopify=shopify, webhooks=webhooks).run()
    finally:
        await shopify.close()
        await webhooks.close()


def main() -> int:
    load_dotenv()
    configure_logging()
    try:
        asyncio.run(run_monitors())
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
