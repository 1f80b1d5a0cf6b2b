"""Operations on the :class:`Merchant` aggregate and its apps."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from kairopay.errors import APIError, ErrorCode
from kairopay.models.merchant import App, Merchant
from kairopay.utils.clock import utcnow
from kairopay.utils.crypto import hash_api_key
from kairopay.utils.ids import (
    api_key_lookup_prefix,
    generate_api_key,
    generate_app_id,
    generate_merchant_id,
)

# Placeholder balances until a live balance integration exists
PLACEHOLDER_BALANCES = {"eth": "0.0000", "usdc": "0.00", "pyusd": "0.00"}


async def get_merchant_by_privy_did(db: AsyncSession, privy_did: str) -> Optional[Merchant]:
    result = await db.execute(select(Merchant).filter_by(privy_did=privy_did))
    return result.scalars().first()


async def get_merchant_by_id(db: AsyncSession, merchant_id: str) -> Optional[Merchant]:
    result = await db.execute(select(Merchant).filter_by(merchant_id=merchant_id))
    return result.scalars().first()


async def require_merchant(db: AsyncSession, privy_did: str) -> Merchant:
    merchant = await get_merchant_by_privy_did(db, privy_did)
    if merchant is None:
        raise APIError(ErrorCode.MERCHANT_NOT_FOUND, "Merchant not found")
    return merchant


def find_app(merchant: Merchant, app_id: str) -> Optional[App]:
    return next((app for app in merchant.apps if app.app_id == app_id), None)


async def register_merchant(
    db: AsyncSession,
    privy_did: str,
    evm_wallet: Optional[str] = None,
    sol_wallet: Optional[str] = None,
) -> Merchant:
    """Create the merchant for ``privy_did``; one merchant per identity."""
    if await get_merchant_by_privy_did(db, privy_did):
        raise APIError(ErrorCode.MERCHANT_EXISTS, "Merchant with this Privy DID already exists")

    merchant = Merchant(
        merchant_id=generate_merchant_id(),
        privy_did=privy_did,
        evm_wallet=evm_wallet,
        sol_wallet=sol_wallet,
        apps=[],
    )
    db.add(merchant)
    try:
        await db.commit()
    except IntegrityError:
        # concurrent registration for the same DID won the unique index
        await db.rollback()
        raise APIError(ErrorCode.MERCHANT_EXISTS, "Merchant with this Privy DID already exists")
    await db.refresh(merchant)
    return merchant


async def add_app(
    db: AsyncSession,
    merchant: Merchant,
    name: str,
    webhook_url: Optional[str] = None,
) -> tuple[App, str]:
    """Append a new app to ``merchant`` and return it with its plaintext key.

    This is the only place apps are created. The key is hashed before it
    is stored and cannot be recovered afterwards. A clashing ``app_id``
    surfaces as an ``IntegrityError`` from the unique index.
    """
    api_key = generate_api_key()
    app = App(
        app_id=generate_app_id(),
        api_key_prefix=api_key_lookup_prefix(api_key),
        api_key_hash=await run_in_threadpool(hash_api_key, api_key),
        name=name,
        webhook_url=webhook_url,
        created_at=utcnow(),
    )
    merchant.apps.append(app)
    await db.commit()
    await db.refresh(app)
    return app, api_key
