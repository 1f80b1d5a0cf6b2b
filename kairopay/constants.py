from enum import Enum

# Orders expire this long after creation; no transaction may attach afterwards
ORDER_TTL_MINUTES = 15

DEFAULT_CURRENCY = "USD"


class OrderStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    COMPLETED = "completed"
    VERIFIED = "verified"
    FAILED = "failed"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class WebhookEventType(str, Enum):
    ORDER_CREATED = "order.created"
    ORDER_PENDING = "order.pending"
    ORDER_COMPLETE = "order.complete"
