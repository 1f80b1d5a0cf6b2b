"""Request bodies accepted by the API."""

from decimal import Decimal
from typing import Annotated, Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, Field


def _check_webhook_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("webhook_url must be a valid URL")
    return value


WebhookUrl = Annotated[Optional[str], Field(max_length=2048), AfterValidator(_check_webhook_url)]


class RegisterMerchantRequest(BaseModel):
    privy_did: str = Field(..., min_length=1, max_length=128)
    evm_wallet: Optional[str] = Field(None, max_length=128)
    sol_wallet: Optional[str] = Field(None, max_length=128)


class CreateAppRequest(BaseModel):
    privy_did: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    webhook_url: WebhookUrl = None


class CreateOrderRequest(BaseModel):
    amount_usd: Decimal
    currency: Optional[str] = Field(None, max_length=8)
    metadata: Optional[Dict[str, Any]] = None
    webhook_url: WebhookUrl = None
    order_id: Optional[str] = Field(None, min_length=1, max_length=64)
    customer_did: Optional[str] = Field(None, max_length=128)


class SubmitTransactionRequest(BaseModel):
    tx_hash: str = Field(..., min_length=1, max_length=128)
    chain: str = Field(..., min_length=1, max_length=64)
    asset: str = Field(..., min_length=1, max_length=64)
    from_address: str = Field(..., alias="from", min_length=1, max_length=128)
    to_address: str = Field(..., alias="to", min_length=1, max_length=128)
    # JSON number or decimal string
    amount: Decimal
