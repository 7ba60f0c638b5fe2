import re

import pendulum
import pytest

from conftest import SITE_URL
from storewatch.ingest.models import AvailableProduct, AvailableVariant, EffectiveSettings
from storewatch.logic.diff import ProductEventKind
from storewatch.message.render import BLANK, PasswordState, render_password_message, render_product_message
from storewatch.utils.dates import embed_timestamp


def make_product(sizes=1, image="https://cdn.shop.test/x.jpg"):
    return AvailableProduct(
        title="X",
        handle="x",
        vendor="V",
        price="5",
        image=image,
        variants=tuple(AvailableVariant(name=f"US {n}", id=100 + n) for n in range(sizes)),
    )


@pytest.mark.parametrize("sizes, length, padded", [(0, 3, False), (1, 4, False), (2, 6, True), (3, 6, False), (5, 9, True)])
def test_size_fields_pad_rows_of_three(site, sizes, length, padded):
    message = render_product_message(site, make_product(sizes), ProductEventKind.RESTOCK, EffectiveSettings(sizes=True))
    fields = message["embeds"][0]["fields"]
    assert len(fields) == length
    assert (fields[-1] == {"name": BLANK, "value": BLANK, "inline": True}) is padded
    assert BLANK == "⠀"


def test_product_embed_fields(site):
    message = render_product_message(site, make_product(1), ProductEventKind.NEW_PRODUCT, EffectiveSettings(sizes=True))
    embed = message["embeds"][0]
    assert message["content"] is None
    assert "username" not in message and "avatar_url" not in message
    assert embed["title"] == "X"
    assert embed["url"] == f"{SITE_URL}/products/x"
    assert embed["color"] is None
    assert embed["author"] == {"name": "Hexco", "url": SITE_URL, "icon_url": "https://cdn.shop.test/logo.png"}
    assert embed["fields"][:4] == [
        {"name": "Event", "value": "New Product", "inline": True},
        {"name": "Brand", "value": "V", "inline": True},
        {"name": "Price", "value": "5", "inline": True},
        {"name": "Size US 0", "value": f"[ATC]({SITE_URL}/cart/add?id=100)", "inline": True},
    ]
    for key in ("footer", "timestamp", "image", "thumbnail", "description"):
        assert key not in embed


def test_sizes_disabled_keeps_three_fields(site):
    message = render_product_message(site, make_product(4), ProductEventKind.RESTOCK, EffectiveSettings())
    assert [f["name"] for f in message["embeds"][0]["fields"]] == ["Event", "Brand", "Price"]
    assert message["embeds"][0]["fields"][0]["value"] == "Restock"


def test_image_and_thumbnail_need_flag_and_image(site):
    settings = EffectiveSettings(image=True, thumbnail=True)
    embed = render_product_message(site, make_product(), ProductEventKind.RESTOCK, settings)["embeds"][0]
    assert embed["image"] == {"url": "https://cdn.shop.test/x.jpg"}
    assert embed["thumbnail"] == {"url": "https://cdn.shop.test/x.jpg"}
    embed = render_product_message(site, make_product(image=None), ProductEventKind.RESTOCK, settings)["embeds"][0]
    assert "image" not in embed and "thumbnail" not in embed


def test_message_identity_and_footer(site):
    settings = EffectiveSettings(username="bot", avatar="a.png", color=0x123456, footer_text="via storewatch", footer_image="f.png")
    message = render_product_message(site, make_product(), ProductEventKind.RESTOCK, settings)
    assert message["username"] == "bot"
    assert message["avatar_url"] == "a.png"
    embed = message["embeds"][0]
    assert embed["color"] == 0x123456
    assert embed["footer"] == {"text": "via storewatch", "icon_url": "f.png"}
    assert "timestamp" not in embed


def test_footer_icon_alone_is_dropped_without_text_or_timestamp(site):
    embed = render_password_message(site, PasswordState.UP, EffectiveSettings(footer_image="f.png"))["embeds"][0]
    assert "footer" not in embed


def test_timestamp_adds_footer(site):
    embed = render_password_message(site, PasswordState.DOWN, EffectiveSettings(timestamp=True, footer_image="f.png"))["embeds"][0]
    assert embed["footer"] == {"icon_url": "f.png"}
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", embed["timestamp"])


def test_password_messages(site):
    up = render_password_message(site, PasswordState.UP, EffectiveSettings())["embeds"][0]
    down = render_password_message(site, PasswordState.DOWN, EffectiveSettings())["embeds"][0]
    assert up["title"] == "Password Page Up!"
    assert down["title"] == "Password Page Down!"
    assert up["url"] == SITE_URL
    for key in ("fields", "image", "thumbnail"):
        assert key not in up


def test_embed_timestamp_format():
    moment = pendulum.datetime(2024, 1, 2, 3, 4, 5, 678901, tz="Europe/Rome")
    assert embed_timestamp(moment) == "2024-01-02T02:04:05.678Z"
