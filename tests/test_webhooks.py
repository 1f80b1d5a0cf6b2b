import asyncio
import json

import httpx

from kairopay import config
from kairopay.notify.webhook import SIGNATURE_HEADER, WebhookDispatcher, create_event, dispatch
from kairopay.utils.crypto import verify_webhook_signature

SECRET = "webhook-secret"


def sample_event(**extra):
    return create_event("order.created", order_id="ord_1", merchant_id="m_1", app_id="app_1", **extra)


def post_once(handler, event=None):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await dispatch(client, "https://merchant.test/hook", event or sample_event(), SECRET)

    return asyncio.run(run())


def test_event_omits_absent_fields():
    event = sample_event()
    assert list(event) == ["event", "order_id", "merchant_id", "app_id", "timestamp"]
    assert event["timestamp"].endswith("Z")


def test_event_with_transaction_fields():
    event = sample_event(tx_hash="0xabc", chain="base", asset="USDC", amount=25)
    assert event["tx_hash"] == "0xabc"
    assert event["amount"] == 25
    assert list(event)[:6] == ["event", "order_id", "tx_hash", "chain", "asset", "amount"]


def test_dispatch_signs_body_and_header():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["header"] = request.headers[SIGNATURE_HEADER]
        return httpx.Response(200)

    assert post_once(handler) is True
    assert seen["body"]["signature"] == seen["header"]
    assert verify_webhook_signature(seen["body"], seen["header"], SECRET)


def test_dispatch_reports_non_2xx():
    assert post_once(lambda request: httpx.Response(500)) is False
    assert post_once(lambda request: httpx.Response(204)) is True


def test_dispatch_swallows_transport_errors():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert post_once(handler) is False


def test_dispatcher_delivers_queued_events():
    delivered = []

    def handler(request):
        delivered.append(json.loads(request.content)["order_id"])
        return httpx.Response(200)

    async def run():
        dispatcher = WebhookDispatcher(
            secret=SECRET, workers=1, transport=httpx.MockTransport(handler)
        )
        await dispatcher.start()
        for n in range(3):
            assert dispatcher.submit(
                "https://merchant.test/hook",
                create_event("order.created", order_id=f"ord_{n}", merchant_id="m_1", app_id="app_1"),
            )
        await dispatcher.join()
        await dispatcher.stop()

    asyncio.run(run())
    assert delivered == ["ord_0", "ord_1", "ord_2"]


def test_full_queue_rejects_new_event():
    async def run():
        # not started: nothing drains the queue
        dispatcher = WebhookDispatcher(secret=SECRET, max_queue_size=2)
        results = [dispatcher.submit("https://merchant.test/hook", sample_event()) for _ in range(3)]
        return results, dispatcher.pending

    results, pending = asyncio.run(run())
    assert results == [True, True, False]
    assert pending == 2


def test_dispatcher_client_uses_configured_timeout():
    async def run():
        dispatcher = WebhookDispatcher(secret=SECRET)
        await dispatcher.start()
        timeout = dispatcher._client.timeout
        await dispatcher.stop()
        return dispatcher.timeout, timeout

    configured, timeout = asyncio.run(run())
    assert configured == config.WEBHOOK_TIMEOUT_SECONDS
    assert timeout.connect == timeout.read == timeout.write == timeout.pool == configured


def test_dispatcher_timeout_override():
    async def run():
        dispatcher = WebhookDispatcher(secret=SECRET, timeout=2.5)
        await dispatcher.start()
        timeout = dispatcher._client.timeout
        await dispatcher.stop()
        return timeout

    assert asyncio.run(run()).read == 2.5
