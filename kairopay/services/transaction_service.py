"""Transaction submission against orders, status hooks and listings."""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.constants import OrderStatus, TransactionStatus, WebhookEventType
from kairopay.errors import APIError, ErrorCode
from kairopay.models.transaction import Transaction
from kairopay.notify.webhook import create_event
from kairopay.services.order_service import require_order, validate_positive_amount
from kairopay.services.order_state import ensure_transition, transition
from kairopay.services.pagination import clamp_pagination
from kairopay.services.pricing import PriceOracle, default_price_oracle
from kairopay.utils.clock import utcnow

logger = logging.getLogger(__name__)


async def get_transaction(db: AsyncSession, tx_hash: str) -> Optional[Transaction]:
    result = await db.execute(select(Transaction).filter_by(tx_hash=tx_hash))
    return result.scalars().first()


async def submit_transaction(
    db: AsyncSession,
    order_id: str,
    tx_hash: str,
    chain: str,
    asset: str,
    from_address: str,
    to_address: str,
    amount: Any,
    webhooks,
    price_oracle: PriceOracle = default_price_oracle,
) -> Transaction:
    """Record a customer's payment claim and move the order to ``pending``.

    A ``tx_hash`` is accepted once system-wide; a resubmission is rejected
    and changes nothing. The chain itself is not consulted.
    """
    amount = validate_positive_amount(amount, "amount")

    order = await require_order(db, order_id)
    if utcnow() > order.expires_at:
        raise APIError(ErrorCode.ORDER_EXPIRED, "Order has expired")
    if await get_transaction(db, tx_hash) is not None:
        raise APIError(ErrorCode.TRANSACTION_EXISTS, "Transaction already recorded")
    ensure_transition(order, OrderStatus.PENDING)

    now = utcnow()
    transaction = Transaction(
        tx_hash=tx_hash,
        order_id=order.order_id,
        merchant_id=order.merchant_id,
        app_id=order.app_id,
        chain=chain,
        asset=asset,
        amount=amount,
        usd_value=price_oracle.convert(asset, amount),
        from_address=from_address,
        to_address=to_address,
        status=TransactionStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    db.add(transaction)
    transition(order, OrderStatus.PENDING)
    order.updated_at = now
    try:
        await db.commit()
    except IntegrityError:
        # lost a race with an identical submission
        await db.rollback()
        raise APIError(ErrorCode.TRANSACTION_EXISTS, "Transaction already recorded")

    if order.webhook_url:
        webhooks.submit(
            order.webhook_url,
            create_event(
                WebhookEventType.ORDER_PENDING,
                order_id=order.order_id,
                tx_hash=tx_hash,
                chain=chain,
                asset=asset,
                amount=amount,
                merchant_id=order.merchant_id,
                app_id=order.app_id,
            ),
        )
    return transaction


async def mark_transaction_status(
    db: AsyncSession, tx_hash: str, status: TransactionStatus
) -> Transaction:
    """Out-of-band hook for whatever confirms or rejects a transaction."""
    transaction = await get_transaction(db, tx_hash)
    if transaction is None:
        raise APIError(ErrorCode.TRANSACTION_NOT_FOUND, "Transaction not found")

    now = utcnow()
    transaction.status = TransactionStatus(status).value
    if transaction.status == TransactionStatus.CONFIRMED.value:
        transaction.confirmed_at = now
    transaction.updated_at = now
    await db.commit()
    logger.info("Transaction %s marked %s", tx_hash, transaction.status)
    return transaction


async def list_transactions(
    db: AsyncSession,
    app_id: str,
    status: Optional[str] = None,
    chain: Optional[str] = None,
    asset: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> tuple[list[Transaction], int, Decimal, int, int]:
    """Newest transactions first.

    Returns ``(page, total, page_volume_usd, limit, offset)``. The volume is
    summed over the returned page only.
    """
    limit, offset = clamp_pagination(limit, offset)

    filters = [Transaction.app_id == app_id]
    if status:
        filters.append(Transaction.status == status)
    if chain:
        filters.append(Transaction.chain == chain)
    if asset:
        filters.append(Transaction.asset == asset)

    total = await db.scalar(select(func.count(Transaction.id)).where(*filters))
    result = await db.execute(
        select(Transaction)
        .where(*filters)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .offset(offset)
    )
    page = list(result.scalars().all())
    volume = sum((tx.usd_value or Decimal(0) for tx in page), Decimal(0))
    return page, int(total or 0), volume, limit, offset
