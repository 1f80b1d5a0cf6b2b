"""Order creation, completion and reads."""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import quote

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay import config
from kairopay.auth.credentials import AuthContext
from kairopay.constants import (
    DEFAULT_CURRENCY,
    ORDER_TTL_MINUTES,
    OrderStatus,
    TransactionStatus,
    WebhookEventType,
)
from kairopay.errors import APIError, ErrorCode
from kairopay.models.order import Order
from kairopay.models.transaction import Transaction
from kairopay.notify.webhook import create_event
from kairopay.services import merchant_service
from kairopay.services.order_state import transition
from kairopay.services.pagination import clamp_pagination
from kairopay.utils.clock import utcnow
from kairopay.utils.ids import generate_order_id

logger = logging.getLogger(__name__)


def build_checkout_url(order_id: str) -> str:
    return f"{config.APP_URL}/order/{quote(order_id, safe='')}"


def validate_positive_amount(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise APIError(ErrorCode.INVALID_REQUEST, f"{field_name} must be a positive number")
    amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    if not amount.is_finite() or amount <= 0:
        raise APIError(ErrorCode.INVALID_REQUEST, f"{field_name} must be a positive number")
    return amount


async def get_order(db: AsyncSession, order_id: str, app_id: Optional[str] = None) -> Optional[Order]:
    query = select(Order).filter_by(order_id=order_id)
    if app_id is not None:
        query = query.filter_by(app_id=app_id)
    result = await db.execute(query)
    return result.scalars().first()


async def require_order(db: AsyncSession, order_id: str, app_id: Optional[str] = None) -> Order:
    order = await get_order(db, order_id, app_id)
    if order is None:
        raise APIError(ErrorCode.ORDER_NOT_FOUND, "Order not found")
    return order


async def create_order(
    db: AsyncSession,
    auth: AuthContext,
    app_id: str,
    amount_usd: Any,
    webhooks,
    currency: Optional[str] = None,
    metadata: Optional[dict] = None,
    webhook_url: Optional[str] = None,
    order_id: Optional[str] = None,
    customer_did: Optional[str] = None,
) -> Order:
    """Persist a new order in ``created`` status and announce it.

    ``webhook_url`` falls back to the app's default endpoint.
    """
    amount = validate_positive_amount(amount_usd, "amount_usd")

    merchant = await merchant_service.get_merchant_by_id(db, auth.merchant_id)
    if merchant is None:
        raise APIError(ErrorCode.MERCHANT_NOT_FOUND, "Merchant not found")
    app = merchant_service.find_app(merchant, app_id)
    final_webhook_url = webhook_url or (app.webhook_url if app else None)

    order_id = order_id or generate_order_id()
    now = utcnow()
    order = Order(
        order_id=order_id,
        merchant_id=auth.merchant_id,
        app_id=app_id,
        customer_did=customer_did,
        amount_usd=amount,
        currency=currency or DEFAULT_CURRENCY,
        metadata_json=metadata or {},
        webhook_url=final_webhook_url,
        status=OrderStatus.CREATED.value,
        checkout_url=build_checkout_url(order_id),
        expires_at=now + timedelta(minutes=ORDER_TTL_MINUTES),
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise APIError(ErrorCode.CONFLICT, f"Order {order_id} already exists")
    await db.refresh(order)

    if order.webhook_url:
        webhooks.submit(
            order.webhook_url,
            create_event(
                WebhookEventType.ORDER_CREATED,
                order_id=order.order_id,
                merchant_id=order.merchant_id,
                app_id=order.app_id,
            ),
        )
    return order


async def list_orders(
    db: AsyncSession,
    app_id: str,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> tuple[list[tuple[Order, int]], int, int, int]:
    """Newest orders first, each paired with its transaction count.

    Returns ``(rows, total, limit, offset)`` with the clamped window.
    """
    limit, offset = clamp_pagination(limit, offset)

    filters = [Order.app_id == app_id]
    if status:
        filters.append(Order.status == status)

    total = await db.scalar(select(func.count(Order.id)).where(*filters))

    tx_counts = (
        select(Transaction.order_id, func.count(Transaction.id).label("tx_count"))
        .group_by(Transaction.order_id)
        .subquery()
    )
    result = await db.execute(
        select(Order, func.coalesce(tx_counts.c.tx_count, 0))
        .outerjoin(tx_counts, tx_counts.c.order_id == Order.order_id)
        .where(*filters)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = [(order, int(count)) for order, count in result.all()]
    return rows, int(total or 0), limit, offset


async def get_order_with_transactions(
    db: AsyncSession, app_id: str, order_id: str
) -> tuple[Order, list[Transaction]]:
    order = await require_order(db, order_id, app_id)
    result = await db.execute(
        select(Transaction)
        .filter_by(order_id=order_id)
        .order_by(Transaction.created_at, Transaction.id)
    )
    return order, list(result.scalars().all())


async def complete_order(
    db: AsyncSession, app_id: str, order_id: str, webhooks
) -> tuple[Order, Transaction]:
    """Mark an order verified once one of its transactions is confirmed."""
    order = await require_order(db, order_id, app_id)

    result = await db.execute(
        select(Transaction)
        .filter_by(order_id=order_id, status=TransactionStatus.CONFIRMED.value)
        .order_by(Transaction.confirmed_at, Transaction.id)
    )
    confirmed_tx = result.scalars().first()
    if confirmed_tx is None:
        raise APIError(ErrorCode.NO_CONFIRMED_TRANSACTION, "Order has no confirmed transactions")

    transition(order, OrderStatus.VERIFIED)
    order.updated_at = utcnow()
    await db.commit()

    if order.webhook_url:
        webhooks.submit(
            order.webhook_url,
            create_event(
                WebhookEventType.ORDER_COMPLETE,
                order_id=order.order_id,
                tx_hash=confirmed_tx.tx_hash,
                chain=confirmed_tx.chain,
                asset=confirmed_tx.asset,
                amount=confirmed_tx.amount,
                merchant_id=order.merchant_id,
                app_id=order.app_id,
            ),
        )
    return order, confirmed_tx


async def fail_order(db: AsyncSession, order_id: str) -> Order:
    """Out-of-band hook: an external check decided the order failed."""
    order = await require_order(db, order_id)
    transition(order, OrderStatus.FAILED)
    order.updated_at = utcnow()
    await db.commit()
    logger.info("Order %s marked failed", order_id)
    return order
