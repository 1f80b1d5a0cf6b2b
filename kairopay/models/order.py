from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String

from kairopay.constants import DEFAULT_CURRENCY, OrderStatus
from kairopay.db.base_class import Base
from kairopay.utils.clock import utcnow


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(64), unique=True, index=True, nullable=False)
    merchant_id = Column(String(32), index=True, nullable=False)
    app_id = Column(String(32), index=True, nullable=False)
    customer_did = Column(String(128), index=True, nullable=True)
    amount_usd = Column(Numeric(20, 8), nullable=False)
    currency = Column(String(8), nullable=False, default=DEFAULT_CURRENCY)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    webhook_url = Column(String(2048), nullable=True)
    status = Column(String(16), nullable=False, default=OrderStatus.CREATED.value, index=True)
    checkout_url = Column(String(2048), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
