import httpx
import pytest
import respx

from conftest import make_destination
from storewatch.jobs.delivery import deliver
from storewatch.jobs.signals import InvalidRegistry, SignalBus, WebhookInvalid
from storewatch.utils.webhook import Status, WebhookClient

HOOK = "https://discord.test/api/webhooks/1/a"
MESSAGE = {"content": None, "embeds": [{"title": "X", "color": None}]}


async def run_delivery(responses, registry=None, bus=None):
    registry = registry if registry is not None else InvalidRegistry()
    bus = bus or SignalBus(1)
    async with respx.mock(assert_all_called=False) as router:
        route = router.post(HOOK).mock(side_effect=responses)
        client = WebhookClient()
        try:
            status = await deliver(client, make_destination(url=HOOK), MESSAGE, registry=registry, signals=bus)
        finally:
            await client.close()
    return status, route, registry, bus


@pytest.mark.asyncio
async def test_success_sends_once():
    status, route, _, _ = await run_delivery([httpx.Response(204)])
    assert status is Status.SUCCESS
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_rate_limit_with_retry_after_retries():
    responses = [
        httpx.Response(429, json={"retry_after": 0}),
        httpx.Response(429, json={"retry_after": 0.01}),
        httpx.Response(200),
    ]
    status, route, _, _ = await run_delivery(responses)
    assert status is Status.SUCCESS
    assert route.call_count == 3


@pytest.mark.asyncio
async def test_rate_limit_without_retry_after_gives_up():
    status, route, registry, _ = await run_delivery([httpx.Response(429, text="slow down"), httpx.Response(204)])
    assert status is Status.RATE_LIMIT
    assert route.call_count == 1
    assert HOOK not in registry


@pytest.mark.asyncio
async def test_invalid_registers_and_signals():
    status, _, registry, bus = await run_delivery([httpx.Response(404)])
    assert status is Status.INVALID
    assert registry.since(0) == [HOOK]
    assert await bus.receive() == WebhookInvalid(HOOK)


@pytest.mark.asyncio
async def test_unknown_is_not_retried(caplog):
    status, route, _, _ = await run_delivery([httpx.Response(500), httpx.Response(204)])
    assert status is Status.UNKNOWN
    assert route.call_count == 1
    assert "Failed to deliver webhook" in caplog.text


@pytest.mark.asyncio
async def test_known_invalid_url_is_never_sent():
    registry = InvalidRegistry()
    registry.add(HOOK)
    async with respx.mock(assert_all_called=False) as router:
        route = router.post(HOOK).mock(return_value=httpx.Response(204))
        client = WebhookClient()
        status = await deliver(client, make_destination(url=HOOK), MESSAGE, registry=registry, signals=SignalBus(1))
        await client.close()
    assert status is None
    assert not route.called


def test_registry_deduplicates():
    registry = InvalidRegistry()
    assert registry.add("a") is True
    assert registry.add("b") is True
    assert registry.add("a") is False
    assert registry.since(1) == ["b"]
    assert len(registry) == 2
