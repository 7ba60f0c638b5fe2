"""Send a test password-page webhook for the first configured site."""

from __future__ import annotations

import asyncio
import os

from dotenv import load_dotenv

from storewatch.ingest import load_sites
from storewatch.message.render import PasswordState, render_password_message
from storewatch.utils.webhook import WebhookClient


async def main() -> None:
    load_dotenv()
    sites = load_sites()
    if not sites:
        raise SystemExit("No sites with webhooks configured")
    site = sites[0]
    destinations = site.restock + site.password_up + site.password_down
    destination = destinations[0]
    url = os.environ.get("TEST_WEBHOOK_URL") or destination.url
    message = render_password_message(site, PasswordState.UP, destination.settings)
    client = WebhookClient()
    try:
        result = await client.send(url, message)
    finally:
        await client.close()
    print("Sent test webhook for", site.name, "->", result.status.value)


if __name__ == "__main__":
    asyncio.run(main())
