from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.api.deps import envelope, get_db
from kairopay.api.schemas import CreateAppRequest, RegisterMerchantRequest
from kairopay.api.serializers import merchant_to_dict
from kairopay.services import merchant_service
from kairopay.utils.clock import isoformat, utcnow

router = APIRouter(prefix="/merchant", tags=["merchant"])


@router.post("/register", status_code=201)
async def register_merchant(body: RegisterMerchantRequest, db: AsyncSession = Depends(get_db)):
    """Register a merchant for a Privy DID (409 if it already has one)."""
    merchant = await merchant_service.register_merchant(
        db, body.privy_did, evm_wallet=body.evm_wallet, sol_wallet=body.sol_wallet
    )
    return envelope(merchant_to_dict(merchant))


@router.post("/register/app", status_code=201)
async def create_app(body: CreateAppRequest, db: AsyncSession = Depends(get_db)):
    """Create an app and return its API key. The key is shown only here."""
    merchant = await merchant_service.require_merchant(db, body.privy_did)
    app, api_key = await merchant_service.add_app(db, merchant, body.name, body.webhook_url)
    return envelope(
        {
            "app_id": app.app_id,
            "api_key": api_key,
            "name": app.name,
            "webhook_url": app.webhook_url,
            "created_at": isoformat(app.created_at),
        }
    )


@router.get("/{privy_did}")
async def get_merchant(privy_did: str, db: AsyncSession = Depends(get_db)):
    merchant = await merchant_service.require_merchant(db, privy_did)
    return envelope(merchant_to_dict(merchant, include_apps=True))


@router.get("/{privy_did}/balances")
async def get_merchant_balances(privy_did: str, db: AsyncSession = Depends(get_db)):
    merchant = await merchant_service.require_merchant(db, privy_did)
    return envelope(
        {
            "wallets": {"evm": merchant.evm_wallet, "sol": merchant.sol_wallet},
            "balances": dict(merchant_service.PLACEHOLDER_BALANCES),
            "updated_at": isoformat(utcnow()),
        }
    )
