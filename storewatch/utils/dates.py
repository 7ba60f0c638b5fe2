"""Datetime helpers."""

from __future__ import annotations

import pendulum


def now_utc() -> pendulum.DateTime:
    return pendulum.now("UTC")


def embed_timestamp(value: pendulum.DateTime | None = None) -> str:
    """RFC 3339 with millisecond precision and a trailing `Z`."""
    moment = (value or now_utc()).in_timezone("UTC")
    return moment.format("YYYY-MM-DD[T]HH:mm:ss.SSS") + "Z"
