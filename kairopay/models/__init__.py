from kairopay.models.merchant import App, Merchant
from kairopay.models.order import Order
from kairopay.models.transaction import Transaction

__all__ = ["App", "Merchant", "Order", "Transaction"]
