"""Simple debug script to inspect merchants, orders and transactions asynchronously."""

import asyncio
from sqlalchemy import select

from kairopay.db.session import SessionLocal
from kairopay.models import Merchant, Order, Transaction


async def main() -> None:
    async with SessionLocal() as db:
        merchants = (await db.execute(select(Merchant))).scalars().all()
        orders = (await db.execute(select(Order).order_by(Order.created_at))).scalars().all()
        transactions = (await db.execute(select(Transaction))).scalars().all()

        for merchant in merchants:
            apps = ", ".join(app.app_id for app in merchant.apps) or "-"
            print(f"Merchant {merchant.merchant_id} {merchant.privy_did} apps: {apps}")
        for order in orders:
            print(f"Order {order.order_id} app={order.app_id} {order.amount_usd} {order.currency} {order.status}")
        for tx in transactions:
            print(f"Tx {tx.tx_hash} order={tx.order_id} {tx.amount} {tx.asset}@{tx.chain} {tx.status}")


if __name__ == "__main__":
    asyncio.run(main())
