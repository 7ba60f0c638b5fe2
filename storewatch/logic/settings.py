"""Tri-state settings resolution.

Every level of the server → channel → store → event hierarchy may carry a
`settings` block. Each field in a block is in one of three states:

* absent (the key is missing): the value inherited from the outer level is kept,
* null (`"field": null`): the field is reset to its default,
* a value: the value replaces whatever was inherited.

A whole block set to `null` resets every field. Resolution is a left fold over
the chain, outermost level first.
"""

from __future__ import annotations

import enum
import logging
import string
from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

from storewatch.ingest.models import EffectiveSettings

logger = logging.getLogger(__name__)


class _Absent(enum.Enum):
    ABSENT = "absent"

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent.ABSENT

STRING_FIELDS = ("username", "avatar", "color", "footer_text", "footer_image")
BOOL_FIELDS = ("sizes", "thumbnail", "image", "timestamp")
INT_FIELDS = ("minimum",)

DEFAULTS: dict[str, Any] = {
    **{name: None for name in STRING_FIELDS},
    **{name: False for name in BOOL_FIELDS},
    "minimum": 0,
}

MAX_COLOR = 0xFFFFFF

PALETTE = {
    "white": 0xFFFFFF,
    "black": 0x000000,
    "turquoise": 0x1ABC9C,
    "green": 0x2ECC71,
    "blue": 0x3498DB,
    "purple": 0x9B59B6,
    "lilac": 0x9B59B6,
    "pink": 0xE91E63,
    "magenta": 0xE91E63,
    "yellow": 0xF1C40F,
    "orange": 0xE67E22,
    "red": 0xE74C3C,
    "light": 0x95A5A6,
    "lightgray": 0x95A5A6,
    "lightgrey": 0x95A5A6,
    "light gray": 0x95A5A6,
    "light grey": 0x95A5A6,
    "gray": 0x607D8B,
    "grey": 0x607D8B,
    "dark": 0x607D8B,
    "darkgray": 0x607D8B,
    "darkgrey": 0x607D8B,
    "dark gray": 0x607D8B,
    "dark grey": 0x607D8B,
}


@dataclass(slots=True, frozen=True)
class RawSettings:
    username: Any = ABSENT
    avatar: Any = ABSENT
    color: Any = ABSENT
    sizes: Any = ABSENT
    thumbnail: Any = ABSENT
    image: Any = ABSENT
    footer_text: Any = ABSENT
    footer_image: Any = ABSENT
    timestamp: Any = ABSENT
    minimum: Any = ABSENT

    @classmethod
    def null(cls) -> "RawSettings":
        return cls(**{f.name: None for f in fields(cls)})

    @classmethod
    def from_block(cls, block: Any, *, where: str = "settings") -> "RawSettings":
        """Decode a `settings` block, or `ABSENT` when the key was missing."""
        if block is ABSENT:
            return cls()
        if block is None:
            return cls.null()
        if not isinstance(block, Mapping):
            logger.warning("Ignoring malformed settings in %s: %r", where, block)
            return cls()
        values = {}
        for f in fields(cls):
            if f.name not in block:
                continue
            values[f.name] = _checked(f.name, block[f.name], where)
        return cls(**values)


def _checked(name: str, value: Any, where: str) -> Any:
    """Return the value, or null when it has the wrong type for its field."""
    if value is None:
        return None
    if name in STRING_FIELDS and isinstance(value, str):
        return value
    if name in BOOL_FIELDS and isinstance(value, bool):
        return value
    if name in INT_FIELDS and isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    logger.warning("Invalid `%s` in %s: %r, using the default", name, where, value)
    return None


def resolve(chain: Iterable[RawSettings]) -> EffectiveSettings:
    current = dict(DEFAULTS)
    for raw in chain:
        for name in DEFAULTS:
            value = getattr(raw, name)
            if value is ABSENT:
                continue
            current[name] = DEFAULTS[name] if value is None else value
    current["color"] = parse_color(current["color"])
    return EffectiveSettings(**current)


def parse_color(code: str | None) -> int | None:
    if code is None:
        return None
    named = PALETTE.get(code.lower())
    if named is not None:
        return named
    digits = code[1:] if code.startswith("#") else code
    if not digits or not all(ch in string.hexdigits for ch in digits):
        logger.debug("Invalid color `%s`: not hex", code)
        return None
    value = int(digits, 16)
    if value > MAX_COLOR:
        logger.debug("Invalid color `%s`: too large", code)
        return None
    return value
