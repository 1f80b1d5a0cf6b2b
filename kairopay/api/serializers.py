"""Response shapes for stored records."""

from kairopay.models.merchant import App, Merchant
from kairopay.models.order import Order
from kairopay.models.transaction import Transaction
from kairopay.utils.clock import isoformat
from kairopay.utils.money import as_number, round_usd


def app_to_dict(app: App) -> dict:
    # never includes the key hash
    return {
        "app_id": app.app_id,
        "name": app.name,
        "webhook_url": app.webhook_url,
        "created_at": isoformat(app.created_at),
    }


def merchant_to_dict(merchant: Merchant, include_apps: bool = False) -> dict:
    data = {
        "merchant_id": merchant.merchant_id,
        "privy_did": merchant.privy_did,
        "evm_wallet": merchant.evm_wallet,
        "sol_wallet": merchant.sol_wallet,
    }
    if include_apps:
        data["apps"] = [app_to_dict(app) for app in merchant.apps]
    data["created_at"] = isoformat(merchant.created_at)
    return data


def transaction_to_dict(tx: Transaction) -> dict:
    return {
        "tx_hash": tx.tx_hash,
        "order_id": tx.order_id,
        "chain": tx.chain,
        "asset": tx.asset,
        "amount": as_number(tx.amount),
        "usd_value": round_usd(tx.usd_value),
        "from": tx.from_address,
        "to": tx.to_address,
        "status": tx.status,
        "confirmed_at": isoformat(tx.confirmed_at),
        "created_at": isoformat(tx.created_at),
    }


def order_to_dict(order: Order, transaction_count=None, transactions=None) -> dict:
    data = {
        "order_id": order.order_id,
        "merchant_id": order.merchant_id,
        "app_id": order.app_id,
        "customer_did": order.customer_did,
        "amount_usd": round_usd(order.amount_usd),
        "currency": order.currency,
        "metadata": order.metadata_json or {},
        "status": order.status,
        "checkout_url": order.checkout_url,
        "expires_at": isoformat(order.expires_at),
    }
    if transaction_count is not None:
        data["transaction_count"] = transaction_count
    if transactions is not None:
        data["transactions"] = [transaction_to_dict(tx) for tx in transactions]
    data["created_at"] = isoformat(order.created_at)
    data["updated_at"] = isoformat(order.updated_at)
    return data
