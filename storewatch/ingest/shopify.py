"""Shopify `products.json` fetching and snapshot helpers."""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Mapping, Sequence

import httpx

from storewatch.ingest.models import (
    AvailableProduct,
    AvailableVariant,
    MinimalProduct,
    MinimalVariant,
)

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", 30.0))

# Sent on every poll so the storefront treats the monitor like a regular browser.
BROWSER_HEADERS = {
    "pragma": "no-cache",
    "cache-control": "no-cache",
    "upgrade-insecure-requests": "1",
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/86.0.4240.198 Safari/537.36"
    ),
    "accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9"
    ),
    "sec-fetch-site": "none",
    "sec-fetch-mode": "navigate",
    "sec-fetch-user": "?1",
    "sec-fetch-dest": "document",
    "accept-language": "en-US,en;q=0.9",
}

MISSING_PRICE = "?"


class FeedError(ValueError):
    """Raised when a `products.json` body does not have the expected shape."""


class ShopifyClient:
    def __init__(self, *, session: httpx.AsyncClient | None = None) -> None:
        self._session = session or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def close(self) -> None:
        await self._session.aclose()

    async def fetch_products(self, base_url: str) -> httpx.Response:
        """GET `{base_url}/products.json`.

        Status codes are left to the caller; transport failures propagate as
        `httpx.HTTPError`.
        """
        url = f"{base_url.rstrip('/')}/products.json"
        return await self._session.get(url, headers=BROWSER_HEADERS)


def _valid_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def parse_feed(payload: Any) -> list[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        raise FeedError("products.json body is not an object")
    products = payload.get("products")
    if not isinstance(products, list):
        raise FeedError("products.json body has no `products` list")
    for product in products:
        if not isinstance(product, Mapping) or not _valid_id(product.get("id")):
            raise FeedError("product entry without a usable `id`")
        variants = product.get("variants")
        if variants is None:
            variants = []
        elif not isinstance(variants, list):
            raise FeedError(f"product {product['id']} has malformed variants")
        for variant in variants:
            if not isinstance(variant, Mapping) or not _valid_id(variant.get("id")):
                raise FeedError(f"product {product['id']} has a malformed variant")
        images = product.get("images")
        if images is not None and (
            not isinstance(images, list) or not all(isinstance(image, Mapping) for image in images)
        ):
            raise FeedError(f"product {product['id']} has malformed images")
    return products


def to_minimal(products: Iterable[Mapping[str, Any]]) -> list[MinimalProduct]:
    return [
        MinimalProduct(
            id=product["id"],
            updated_at=product.get("updated_at"),
            variants=tuple(
                MinimalVariant(id=variant.get("id"), available=variant.get("available") is True)
                for variant in product.get("variants") or []
            ),
        )
        for product in products
    ]


def to_feed(snapshot: Sequence[MinimalProduct]) -> dict[str, Any]:
    """Render a minimal snapshot back into a `products.json`-shaped document."""
    return {
        "products": [
            {
                "id": product.id,
                "updated_at": product.updated_at,
                "variants": [{"id": v.id, "available": v.available} for v in product.variants],
            }
            for product in snapshot
        ]
    }


def variant_name(title: str | None) -> str:
    kept = "".join(ch for ch in title or "" if ch.isalnum() or ch.isspace() or ch == ".")
    return kept.strip()


def to_presentational(product: Mapping[str, Any]) -> AvailableProduct:
    variants = product.get("variants") or []
    images = product.get("images") or []
    price = MISSING_PRICE
    if variants and variants[0].get("price") is not None:
        price = str(variants[0]["price"])
    image = images[0].get("src") if images else None
    return AvailableProduct(
        title=product.get("title") or "",
        handle=product.get("handle") or "",
        vendor=product.get("vendor") or "",
        price=price,
        image=image or None,
        variants=tuple(
            AvailableVariant(name=variant_name(variant.get("title")), id=variant.get("id"))
            for variant in variants
            if variant.get("available") is True
        ),
    )


def available_count(product: Mapping[str, Any]) -> int:
    return sum(1 for variant in product.get("variants") or [] if variant.get("available") is True)
