"""KairoPay merchant API: apps, payment orders, transactions and webhooks."""

__version__ = "0.1.0"
