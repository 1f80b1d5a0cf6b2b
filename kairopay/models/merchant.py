from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from kairopay.db.base_class import Base
from kairopay.utils.clock import utcnow


class Merchant(Base):
    __tablename__ = "merchants"

    id = Column(Integer, primary_key=True, index=True)
    merchant_id = Column(String(32), unique=True, index=True, nullable=False)
    privy_did = Column(String(128), unique=True, index=True, nullable=False)
    evm_wallet = Column(String(128), nullable=True)
    sol_wallet = Column(String(128), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Apps belong to exactly one merchant and are loaded with it.
    apps = relationship(
        "App",
        back_populates="merchant",
        cascade="all, delete-orphan",
        order_by="App.id",
        lazy="selectin",
    )


class App(Base):
    __tablename__ = "apps"

    id = Column(Integer, primary_key=True, index=True)
    app_id = Column(String(32), unique=True, index=True, nullable=False)
    merchant_pk = Column(Integer, ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False, index=True)
    # First characters of the plaintext key; not secret, only narrows the hash check
    api_key_prefix = Column(String(16), index=True, nullable=False)
    api_key_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    webhook_url = Column(String(2048), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    merchant = relationship("Merchant", back_populates="apps")
