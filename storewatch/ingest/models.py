"""Monitoring data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class EffectiveSettings:
    username: str | None = None
    avatar: str | None = None
    color: int | None = None
    sizes: bool = False
    thumbnail: bool = False
    image: bool = False
    footer_text: str | None = None
    footer_image: str | None = None
    timestamp: bool = False
    minimum: int = 0


@dataclass(slots=True, frozen=True)
class Destination:
    name: str
    url: str
    settings: EffectiveSettings = field(default_factory=EffectiveSettings)


@dataclass(slots=True)
class Site:
    name: str
    url: str
    logo: str
    delay: int = 1
    restock: list[Destination] = field(default_factory=list)
    password_up: list[Destination] = field(default_factory=list)
    password_down: list[Destination] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.restock or self.password_up or self.password_down)


@dataclass(slots=True, frozen=True)
class MinimalVariant:
    id: Any
    available: bool


@dataclass(slots=True, frozen=True)
class MinimalProduct:
    id: Any
    updated_at: Any
    variants: tuple[MinimalVariant, ...] = ()


@dataclass(slots=True, frozen=True)
class AvailableVariant:
    name: str
    id: Any


@dataclass(slots=True, frozen=True)
class AvailableProduct:
    title: str
    handle: str
    vendor: str
    price: str
    image: str | None
    variants: tuple[AvailableVariant, ...] = ()
