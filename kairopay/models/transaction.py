from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String, UniqueConstraint

from kairopay.constants import TransactionStatus
from kairopay.db.base_class import Base
from kairopay.utils.clock import utcnow


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    # Caller-supplied chain hash; the unique index rejects double submission
    tx_hash = Column(String(128), nullable=False, index=True)
    order_id = Column(String(64), index=True, nullable=False)
    merchant_id = Column(String(32), index=True, nullable=False)
    app_id = Column(String(32), index=True, nullable=False)
    chain = Column(String(64), nullable=False)
    asset = Column(String(64), nullable=False)
    amount = Column(Numeric(38, 18), nullable=False)
    usd_value = Column(Numeric(20, 8), nullable=False)
    from_address = Column("from_address", String(128), nullable=False)
    to_address = Column("to_address", String(128), nullable=False)
    status = Column(String(16), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    confirmed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("tx_hash", name="uq_transactions_tx_hash"),
        Index("ix_transactions_app_status", "app_id", "status"),
    )
