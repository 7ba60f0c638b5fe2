"""Change detection between two `products.json` polls."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from storewatch.ingest.models import MinimalProduct


class ProductEventKind(enum.Enum):
    NEW_PRODUCT = "New Product"
    RESTOCK = "Restock"


@dataclass(slots=True, frozen=True)
class ProductEvent:
    kind: ProductEventKind
    product: Mapping[str, Any]


def restocked(previous: MinimalProduct, current: Mapping[str, Any]) -> bool:
    """True when the product changed and a variant went unavailable → available."""
    if current.get("updated_at") == previous.updated_at:
        return False
    sold_out = {variant.id for variant in previous.variants if not variant.available}
    return any(
        variant.get("available") is True and variant.get("id") in sold_out
        for variant in current.get("variants") or []
    )


def detect_events(
    previous: Sequence[MinimalProduct] | None,
    current: Iterable[Mapping[str, Any]],
) -> list[ProductEvent]:
    """Events for `current` in feed order; nothing on the first poll."""
    if previous is None:
        return []
    by_id = {}
    for product in previous:
        by_id.setdefault(product.id, product)
    events: list[ProductEvent] = []
    for product in current:
        prev = by_id.get(product["id"])
        if prev is None:
            events.append(ProductEvent(ProductEventKind.NEW_PRODUCT, product))
        elif restocked(prev, product):
            events.append(ProductEvent(ProductEventKind.RESTOCK, product))
    return events
