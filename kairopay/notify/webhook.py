"""Signed webhook notifications to merchant endpoints.

Delivery is best effort: one attempt per event, no retries. Routes hand events
to :class:`WebhookDispatcher.submit`, which only enqueues; background workers
started with the application perform the HTTP calls.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Optional

import httpx

from kairopay import config
from kairopay.utils.clock import isoformat, utcnow
from kairopay.utils.crypto import SIGNATURE_SCHEME, generate_webhook_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-KairoPay-Signature"

_OPTIONAL_FIELDS = ("tx_hash", "chain", "asset", "amount")


def create_event(
    event_type: str,
    *,
    order_id: str,
    merchant_id: str,
    app_id: str,
    tx_hash: Optional[str] = None,
    chain: Optional[str] = None,
    asset: Optional[str] = None,
    amount: Any = None,
) -> dict:
    """Build the event body. Absent optional fields are left out entirely."""
    if isinstance(amount, Decimal):
        amount = float(amount)
    optional = {"tx_hash": tx_hash, "chain": chain, "asset": asset, "amount": amount}

    event = {"event": getattr(event_type, "value", event_type), "order_id": order_id}
    for name in _OPTIONAL_FIELDS:
        if optional[name] is not None:
            event[name] = optional[name]
    event["merchant_id"] = merchant_id
    event["app_id"] = app_id
    event["timestamp"] = isoformat(utcnow())
    return event


def sign_event(event: dict, secret: str) -> str:
    return f"{SIGNATURE_SCHEME}={generate_webhook_signature(event, secret)}"


async def dispatch(
    client: httpx.AsyncClient,
    url: str,
    event: dict,
    secret: str,
) -> bool:
    """POST one signed event. True only for a 2xx answer; never raises."""
    signature = sign_event(event, secret)
    payload = {**event, "signature": signature}
    headers = {"Content-Type": "application/json", SIGNATURE_HEADER: signature}

    try:
        response = await client.post(url, json=payload, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning(
            "Webhook %s for order %s to %s failed: %s",
            event.get("event"), event.get("order_id"), url, exc,
        )
        return False

    if not response.is_success:
        logger.warning(
            "Webhook %s for order %s to %s answered %s",
            event.get("event"), event.get("order_id"), url, response.status_code,
        )
        return False

    logger.info("Webhook dispatched: %s -> %s", event.get("event"), url)
    return True


class WebhookDispatcher:
    """Bounded queue of pending deliveries drained by background workers.

    When the queue is full the new event is rejected and logged; events
    already queued keep their place.
    """

    def __init__(
        self,
        secret: str | None = None,
        timeout: float | None = None,
        max_queue_size: int | None = None,
        workers: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret = secret or config.API_SECRET_KEY
        self.timeout = timeout if timeout is not None else config.WEBHOOK_TIMEOUT_SECONDS
        self.workers = workers or config.WEBHOOK_WORKERS
        self._transport = transport
        self._queue: asyncio.Queue = asyncio.Queue(
            maxsize=max_queue_size or config.WEBHOOK_QUEUE_SIZE
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._tasks: list[asyncio.Task] = []

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if self._tasks:
            return
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"webhook-worker-{n}")
            for n in range(self.workers)
        ]
        logger.info("Webhook dispatcher started with %d worker(s)", self.workers)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self.pending:
            logger.warning("Webhook dispatcher stopped with %d undelivered event(s)", self.pending)

    def submit(self, url: str, event: dict) -> bool:
        """Queue an event for delivery without waiting for it."""
        try:
            self._queue.put_nowait((url, event))
        except asyncio.QueueFull:
            logger.warning(
                "Webhook queue full (%d); dropped %s for order %s",
                self._queue.maxsize, event.get("event"), event.get("order_id"),
            )
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued event has had its delivery attempt."""
        await self._queue.join()

    async def _worker(self) -> None:
        while True:
            url, event = await self._queue.get()
            try:
                await dispatch(self._client, url, event, self.secret)
            except Exception:
                logger.exception("Unexpected error delivering webhook to %s", url)
            finally:
                self._queue.task_done()
