"""Turn a decoded configuration document into monitored sites."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from storewatch.ingest.models import Destination, Site
from storewatch.logic.logos import resolve_logo
from storewatch.logic.settings import ABSENT, RawSettings, resolve

logger = logging.getLogger(__name__)

MIN_DELAY_MS = 1
EVENT_FLAGS = ("restock", "password_up", "password_down")


@dataclass(slots=True, frozen=True)
class Route:
    store: str
    destination: Destination
    restock: bool
    password_up: bool
    password_down: bool


def named_items(collection: Any, *, where: str, keep_key: bool = True) -> list[dict[str, Any]]:
    """Normalise a list-or-map collection into a list of dicts.

    In the map form the key becomes the item's `name` unless `keep_key` is
    false, in which case it is discarded.
    """
    if collection is None:
        return []
    if isinstance(collection, Mapping):
        items = []
        for key, value in collection.items():
            if not isinstance(value, Mapping):
                logger.warning("Ignoring malformed entry %r in %s", key, where)
                continue
            item = dict(value)
            if keep_key:
                item["name"] = str(key)
            items.append(item)
        return items
    if isinstance(collection, list):
        items = []
        for value in collection:
            if not isinstance(value, Mapping):
                logger.warning("Ignoring malformed entry %r in %s", value, where)
                continue
            items.append(dict(value))
        return items
    logger.warning("Expected a list or an object for %s, got %r", where, collection)
    return []


def _settings(item: Mapping[str, Any], where: str) -> RawSettings:
    return RawSettings.from_block(item.get("settings", ABSENT), where=where)


def build_routes(servers: Any) -> list[Route]:
    """Resolve every (server, channel, store, event) chain into a route."""
    routes: list[Route] = []
    for server in named_items(servers, where="servers"):
        server_name = server.get("name", "?")
        server_settings = _settings(server, f"server {server_name}")
        for channel in named_items(server.get("channels"), where=f"{server_name}.channels"):
            channel_name = channel.get("name", "?")
            url = channel.get("url")
            if not isinstance(url, str) or not url:
                logger.warning("Skipping channel %s in %s: missing webhook url", channel_name, server_name)
                continue
            channel_settings = _settings(channel, f"channel {channel_name}")
            for store in named_items(channel.get("sites"), where=f"{channel_name}.sites"):
                store_name = store.get("name")
                if not isinstance(store_name, str):
                    logger.warning("Skipping unnamed site in channel %s", channel_name)
                    continue
                store_settings = _settings(store, f"{channel_name}/{store_name}")
                events = named_items(store.get("events"), where=f"{channel_name}/{store_name}.events", keep_key=False)
                for event in events:
                    settings = resolve(
                        [server_settings, channel_settings, store_settings, _settings(event, f"{channel_name}/{store_name} event")]
                    )
                    routes.append(
                        Route(
                            store=store_name,
                            destination=Destination(name=str(channel_name), url=url, settings=settings),
                            **{flag: event.get(flag) is True for flag in EVENT_FLAGS},
                        )
                    )
    return routes


def _delay(site: Mapping[str, Any]) -> int:
    delay = site.get("delay")
    if delay is None:
        return MIN_DELAY_MS
    if isinstance(delay, bool) or not isinstance(delay, int):
        logger.warning("Invalid delay for %s: %r, using %sms", site.get("name"), delay, MIN_DELAY_MS)
        return MIN_DELAY_MS
    return max(delay, MIN_DELAY_MS)


def build_sites(config: Mapping[str, Any]) -> list[Site]:
    """Build the site → destinations routing table, dropping unused sites."""
    routes = build_routes(config.get("servers"))
    sites: list[Site] = []
    for item in named_items(config.get("sites"), where="sites"):
        name, url = item.get("name"), item.get("url")
        if not isinstance(name, str) or not isinstance(url, str):
            logger.warning("Skipping site without a name or url: %r", item)
            continue
        site = Site(
            name=name,
            url=url.rstrip("/"),
            logo=resolve_logo(name, item.get("logo")),
            delay=_delay(item),
        )
        for route in routes:
            if route.store != name:
                continue
            if route.restock:
                site.restock.append(route.destination)
            if route.password_up:
                site.password_up.append(route.destination)
            if route.password_down:
                site.password_down.append(route.destination)
        if site.is_empty():
            logger.info("Not monitoring %s: no webhooks configured", name)
            continue
        sites.append(site)
    return sites
