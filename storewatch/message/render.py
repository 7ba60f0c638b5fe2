"""Webhook message rendering."""

from __future__ import annotations

import enum
from typing import Any

from storewatch.ingest.models import AvailableProduct, EffectiveSettings, Site
from storewatch.logic.diff import ProductEventKind
from storewatch.utils.dates import embed_timestamp

BLANK = "⠀"
FIELDS_PER_ROW = 3


class PasswordState(enum.Enum):
    UP = "Up"
    DOWN = "Down"


def render_product_message(
    site: Site,
    product: AvailableProduct,
    kind: ProductEventKind,
    settings: EffectiveSettings,
) -> dict[str, Any]:
    fields = [
        _field("Event", kind.value),
        _field("Brand", product.vendor),
        _field("Price", product.price),
    ]
    if settings.sizes:
        for variant in product.variants:
            fields.append(_field(f"Size {variant.name}", f"[ATC]({site.url}/cart/add?id={variant.id})"))
        # Pad so Discord lays the inline fields out in full rows.
        if len(fields) % FIELDS_PER_ROW == 2:
            fields.append(_field(BLANK, BLANK))
    embed = _embed(site, settings, title=product.title, url=f"{site.url}/products/{product.handle}")
    embed["fields"] = fields
    if product.image:
        if settings.image:
            embed["image"] = {"url": product.image}
        if settings.thumbnail:
            embed["thumbnail"] = {"url": product.image}
    return _message(embed, settings)


def render_password_message(site: Site, state: PasswordState, settings: EffectiveSettings) -> dict[str, Any]:
    embed = _embed(site, settings, title=f"Password Page {state.value}!", url=site.url)
    return _message(embed, settings)


def _field(name: str, value: str) -> dict[str, Any]:
    return {"name": name, "value": value, "inline": True}


def _embed(site: Site, settings: EffectiveSettings, *, title: str, url: str) -> dict[str, Any]:
    embed: dict[str, Any] = {
        "title": title,
        "url": url,
        "color": settings.color,
        "author": {"name": site.name, "url": site.url, "icon_url": site.logo},
    }
    if settings.footer_text is not None or settings.timestamp:
        footer = {}
        if settings.footer_text is not None:
            footer["text"] = settings.footer_text
        if settings.footer_image is not None:
            footer["icon_url"] = settings.footer_image
        embed["footer"] = footer
    if settings.timestamp:
        embed["timestamp"] = embed_timestamp()
    return embed


def _message(embed: dict[str, Any], settings: EffectiveSettings) -> dict[str, Any]:
    message: dict[str, Any] = {"content": None, "embeds": [embed]}
    if settings.username is not None:
        message["username"] = settings.username
    if settings.avatar is not None:
        message["avatar_url"] = settings.avatar
    return message
