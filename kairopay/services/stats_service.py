"""Aggregated order/transaction figures for an app's dashboard."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.constants import OrderStatus, TransactionStatus
from kairopay.models.order import Order
from kairopay.models.transaction import Transaction

RECENT_TRANSACTIONS = 10


async def _count(db: AsyncSession, model, *filters) -> int:
    return int(await db.scalar(select(func.count(model.id)).where(*filters)) or 0)


async def _breakdown(db: AsyncSession, app_id: str, column) -> list[dict]:
    volume = func.coalesce(func.sum(Transaction.usd_value), 0)
    result = await db.execute(
        select(column, func.count(Transaction.id), volume)
        .where(
            Transaction.app_id == app_id,
            Transaction.status == TransactionStatus.CONFIRMED.value,
        )
        .group_by(column)
        .order_by(volume.desc())
    )
    return [{"key": key, "count": int(count), "volume": total} for key, count, total in result.all()]


async def get_app_stats(db: AsyncSession, app_id: str) -> dict:
    """Counts, revenue and breakdowns; amounts are left unrounded."""
    confirmed = Transaction.status == TransactionStatus.CONFIRMED.value

    orders = {
        "total": await _count(db, Order, Order.app_id == app_id),
        "completed": await _count(
            db, Order, Order.app_id == app_id, Order.status == OrderStatus.VERIFIED.value
        ),
        "pending": await _count(
            db, Order, Order.app_id == app_id, Order.status == OrderStatus.PENDING.value
        ),
        "failed": await _count(
            db, Order, Order.app_id == app_id, Order.status == OrderStatus.FAILED.value
        ),
    }
    transactions = {
        "total": await _count(db, Transaction, Transaction.app_id == app_id),
        "confirmed": await _count(db, Transaction, Transaction.app_id == app_id, confirmed),
    }

    revenue_usd = await db.scalar(
        select(func.coalesce(func.sum(Order.amount_usd), 0)).where(
            Order.app_id == app_id, Order.status == OrderStatus.VERIFIED.value
        )
    )
    volume_usd = await db.scalar(
        select(func.coalesce(func.sum(Transaction.usd_value), 0)).where(
            Transaction.app_id == app_id, confirmed
        )
    )

    recent = await db.execute(
        select(Transaction)
        .where(Transaction.app_id == app_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(RECENT_TRANSACTIONS)
    )

    return {
        "orders": orders,
        "transactions": transactions,
        "revenue_usd": revenue_usd,
        "transaction_volume_usd": volume_usd,
        "by_asset": await _breakdown(db, app_id, Transaction.asset),
        "by_chain": await _breakdown(db, app_id, Transaction.chain),
        "recent_transactions": list(recent.scalars().all()),
    }
