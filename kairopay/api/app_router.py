"""Authenticated per-app routes: orders, transactions and statistics."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.api.deps import envelope, get_db, get_webhooks, require_app_auth
from kairopay.api.schemas import CreateOrderRequest
from kairopay.api.serializers import order_to_dict, transaction_to_dict
from kairopay.auth.credentials import AuthContext
from kairopay.errors import APIError, ErrorCode
from kairopay.notify.webhook import WebhookDispatcher
from kairopay.services import merchant_service, order_service, stats_service, transaction_service
from kairopay.services.pagination import DEFAULT_LIMIT, pagination_info
from kairopay.utils.clock import isoformat, utcnow
from kairopay.utils.money import round_usd

router = APIRouter(prefix="/apps/{app_id}", tags=["apps"])


@router.get("/orders")
async def list_orders(
    app_id: str,
    status: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
):
    rows, total, limit, offset = await order_service.list_orders(
        db, app_id, status=status, limit=limit, offset=offset
    )
    return envelope(
        {
            "orders": [order_to_dict(order, transaction_count=count) for order, count in rows],
            "pagination": pagination_info(total, limit, offset),
        }
    )


@router.post("/orders", status_code=201)
async def create_order(
    app_id: str,
    body: CreateOrderRequest,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhooks),
):
    order = await order_service.create_order(
        db,
        auth,
        app_id,
        body.amount_usd,
        webhooks,
        currency=body.currency,
        metadata=body.metadata,
        webhook_url=body.webhook_url,
        order_id=body.order_id,
        customer_did=body.customer_did,
    )
    return envelope(
        {
            "order_id": order.order_id,
            "checkout_url": order.checkout_url,
            "expires_at": isoformat(order.expires_at),
        }
    )


@router.get("/orders/{order_id}")
async def get_order(
    app_id: str,
    order_id: str,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
):
    order, transactions = await order_service.get_order_with_transactions(db, app_id, order_id)
    return envelope(order_to_dict(order, transactions=transactions))


@router.post("/orders/{order_id}/complete")
async def complete_order(
    app_id: str,
    order_id: str,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhooks),
):
    order, _ = await order_service.complete_order(db, app_id, order_id, webhooks)
    return envelope(
        {
            "order_id": order.order_id,
            "status": order.status,
            "message": "Order marked as complete",
        }
    )


@router.get("/transactions")
async def list_transactions(
    app_id: str,
    status: Optional[str] = None,
    chain: Optional[str] = None,
    asset: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
):
    page, total, volume, limit, offset = await transaction_service.list_transactions(
        db, app_id, status=status, chain=chain, asset=asset, limit=limit, offset=offset
    )
    return envelope(
        {
            "transactions": [transaction_to_dict(tx) for tx in page],
            "stats": {
                "total_transactions": total,
                "total_volume_usd": round_usd(volume),
            },
            "pagination": pagination_info(total, limit, offset),
        }
    )


@router.get("/balances")
async def get_app_balances(
    app_id: str,
    auth: AuthContext = Depends(require_app_auth),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard overview: counts, revenue, asset/chain breakdowns."""
    merchant = await merchant_service.get_merchant_by_id(db, auth.merchant_id)
    if merchant is None:
        raise APIError(ErrorCode.MERCHANT_NOT_FOUND, "Merchant not found")

    stats = await stats_service.get_app_stats(db, app_id)
    return envelope(
        {
            "merchant": {
                "merchant_id": merchant.merchant_id,
                "evm_wallet": merchant.evm_wallet,
                "sol_wallet": merchant.sol_wallet,
            },
            "orders": stats["orders"],
            "transactions": stats["transactions"],
            "revenue": {
                "total_usd": round_usd(stats["revenue_usd"]),
                "transaction_volume_usd": round_usd(stats["transaction_volume_usd"]),
            },
            "breakdown": {
                "by_asset": [
                    {"asset": row["key"], "count": row["count"], "volume_usd": round_usd(row["volume"])}
                    for row in stats["by_asset"]
                ],
                "by_chain": [
                    {"chain": row["key"], "count": row["count"], "volume_usd": round_usd(row["volume"])}
                    for row in stats["by_chain"]
                ],
            },
            "recent_transactions": [transaction_to_dict(tx) for tx in stats["recent_transactions"]],
            "fetched_at": isoformat(utcnow()),
        }
    )
