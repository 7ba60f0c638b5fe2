"""Known storefront logos."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_BASE = "https://raw.githubusercontent.com/subreme"

DEFAULT_LOGO = f"{_BASE}/shopify-monitor/main/logos/shopify.png"

BRAND_LOGOS = {
    "shopify": DEFAULT_LOGO,
    "afew": f"{_BASE}/shopify-monitor/main/logos/afew.jpg",
    "asphaltgold": f"{_BASE}/shopify-monitor/main/logos/asphaltgold.jpg",
    "atmos": f"{_BASE}/atmos-monitor/main/logos/atmos.jpg",
    "bodega": f"{_BASE}/shopify-monitor/main/logos/bodega.png",
    "concepts": f"{_BASE}/concepts-monitor/main/logos/concepts.jpg",
    "extrabutter": f"{_BASE}/extrabutter-monitor/main/logos/extrabutter.jpg",
    "hanon": f"{_BASE}/hanon-monitor/main/logos/hanon.jpg",
    "jimmyjazz": f"{_BASE}/shopify-monitor/main/logos/jimmyjazz.jpg",
    "kith": f"{_BASE}/shopify-monitor/main/logos/kith.jpg",
    "notre": f"{_BASE}/shopify-monitor/main/logos/notre.jpg",
    "packer": f"{_BASE}/shopify-monitor/main/logos/packer.jpg",
    "shoepalace": f"{_BASE}/shopify-monitor/main/logos/shoepalace.jpg",
    "sneakerpolitics": f"{_BASE}/shopify-monitor/main/logos/sneakerpolitics.jpg",
    "travisscott": f"{_BASE}/shopify-monitor/main/logos/travisscott.jpg",
    "cactusjack": f"{_BASE}/shopify-monitor/main/logos/travisscott.jpg",
    "undefeated": f"{_BASE}/shopify-monitor/main/logos/undefeated.jpg",
    "westnyc": f"{_BASE}/shopify-monitor/main/logos/westnyc.jpg",
}


def resolve_logo(site_name: str, logo: str | None) -> str:
    """Return a logo URL: a literal URL, a known brand, or Shopify's logo."""
    if logo and "://" in logo:
        return logo
    key = "".join((logo or "").lower().split())
    known = BRAND_LOGOS.get(key)
    if known:
        return known
    logger.warning("Invalid logo for %s: %r, using Shopify's logo instead", site_name, logo)
    return DEFAULT_LOGO
