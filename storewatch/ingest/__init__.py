"""Configuration loading."""

from __future__ import annotations

import json
import logging
import os
import pathlib
from typing import Any

import yaml

from storewatch.ingest.models import Site
from storewatch.logic.routing import build_sites

logger = logging.getLogger(__name__)

CONFIG_PATH = pathlib.Path("config.json")
PRIVATE_CONFIG_PATH = pathlib.Path("config.private.json")


class ConfigError(RuntimeError):
    pass


def _read(path: pathlib.Path) -> dict[str, Any]:
    text = path.read_text()
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file `{path}`: {exc}") from exc
    if not isinstance(data, dict) or "sites" not in data or "servers" not in data:
        raise ConfigError(f"Invalid config file `{path}`: expected `sites` and `servers`")
    return data


def load_config(path: str | os.PathLike[str] | None = None) -> dict[str, Any]:
    """Read the configuration document.

    `.json` files are parsed as JSON, anything else (`config.yml`) as YAML.
    An explicit path (argument or `STOREWATCH_CONFIG`) is used as is. Otherwise
    `config.private.json` is preferred, falling back to `config.json` when it is
    missing or invalid.
    """
    explicit = path or os.environ.get("STOREWATCH_CONFIG")
    if explicit:
        explicit_path = pathlib.Path(explicit)
        if not explicit_path.exists():
            raise ConfigError(f"`{explicit_path}` not found")
        return _read(explicit_path)
    if PRIVATE_CONFIG_PATH.exists():
        try:
            config = _read(PRIVATE_CONFIG_PATH)
        except ConfigError as exc:
            logger.warning("%s; trying `%s`", exc, CONFIG_PATH)
        else:
            logger.info("Loaded private config file")
            return config
    if not CONFIG_PATH.exists():
        raise ConfigError(f"`{CONFIG_PATH}` not found")
    return _read(CONFIG_PATH)


def load_sites(path: str | os.PathLike[str] | None = None) -> list[Site]:
    sites = build_sites(load_config(path))
    logger.info("Loaded %s sites with webhooks", len(sites))
    return sites
