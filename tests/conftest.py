import json
from pathlib import Path

import pytest

from storewatch.ingest.models import Destination, EffectiveSettings, Site

FIXTURES = Path(__file__).parent / "fixtures" / "http"

SITE_URL = "https://shop.test"
PRODUCTS_URL = f"{SITE_URL}/products.json"


def load_fixture(path: str) -> str:
    return (FIXTURES / path).read_text()


def load_json_fixture(path: str):
    return json.loads(load_fixture(path))


def make_destination(name: str = "drops", url: str = "https://discord.test/api/webhooks/1/a", **settings) -> Destination:
    return Destination(name=name, url=url, settings=EffectiveSettings(**settings))


def product(id=1, updated_at="t0", variants=None, **extra):
    item = {"id": id, "updated_at": updated_at, "variants": variants or []}
    item.update(extra)
    return item


def variant(id, available, price="5", title="Default"):
    return {"id": id, "available": available, "price": price, "title": title}


@pytest.fixture()
def destination() -> Destination:
    return make_destination()


@pytest.fixture()
def site(destination) -> Site:
    return Site(
        name="Hexco",
        url=SITE_URL,
        logo="https://cdn.shop.test/logo.png",
        delay=1000,
        restock=[destination],
        password_up=[destination],
        password_down=[destination],
    )
