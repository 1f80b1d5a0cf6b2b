"""Operator tool for out-of-band status changes.

    python mark_transaction.py confirm <tx_hash>
    python mark_transaction.py fail <tx_hash>
    python mark_transaction.py fail-order <order_id>
"""

import argparse
import asyncio

from kairopay.constants import TransactionStatus
from kairopay.db.session import SessionLocal
from kairopay.errors import APIError
from kairopay.services import order_service, transaction_service


async def main(action: str, target: str) -> int:
    async with SessionLocal() as db:
        try:
            if action == "confirm":
                tx = await transaction_service.mark_transaction_status(
                    db, target, TransactionStatus.CONFIRMED
                )
                print(f"Transaction {tx.tx_hash} confirmed")
            elif action == "fail":
                tx = await transaction_service.mark_transaction_status(
                    db, target, TransactionStatus.FAILED
                )
                print(f"Transaction {tx.tx_hash} failed")
            else:
                order = await order_service.fail_order(db, target)
                print(f"Order {order.order_id} failed")
        except APIError as exc:
            print(f"{exc.code.value}: {exc.message}")
            return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("action", choices=["confirm", "fail", "fail-order"])
    parser.add_argument("target", help="transaction hash or order id")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.action, args.target)))
