from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.api.deps import envelope, get_db, get_price_oracle, get_webhooks
from kairopay.api.schemas import SubmitTransactionRequest
from kairopay.notify.webhook import WebhookDispatcher
from kairopay.services import transaction_service
from kairopay.services.pricing import PriceOracle

router = APIRouter(prefix="/orders", tags=["checkout"])


@router.post("/{order_id}/tx")
async def submit_transaction(
    order_id: str,
    body: SubmitTransactionRequest,
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhooks),
    price_oracle: PriceOracle = Depends(get_price_oracle),
):
    """Public: the hosted checkout page reports the customer's payment here."""
    transaction = await transaction_service.submit_transaction(
        db,
        order_id,
        tx_hash=body.tx_hash,
        chain=body.chain,
        asset=body.asset,
        from_address=body.from_address,
        to_address=body.to_address,
        amount=body.amount,
        webhooks=webhooks,
        price_oracle=price_oracle,
    )
    return envelope(
        {
            "status": "pending",
            "message": "Transaction detected and queued for verification",
            "tx_hash": transaction.tx_hash,
            "order_id": transaction.order_id,
        }
    )
