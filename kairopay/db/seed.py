"""Create a demo merchant with one app and print its one-time API key."""

import asyncio

from kairopay.db.session import DATABASE_URL, SessionLocal, init_db
from kairopay.services import merchant_service

DEMO_PRIVY_DID = "did:privy:demo"

print(f"Using database: {DATABASE_URL}")


async def main() -> None:
    await init_db()
    async with SessionLocal() as session:
        merchant = await merchant_service.get_merchant_by_privy_did(session, DEMO_PRIVY_DID)
        if merchant is None:
            merchant = await merchant_service.register_merchant(
                session, DEMO_PRIVY_DID, evm_wallet="0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"
            )
            print(f"Created merchant {merchant.merchant_id}")

        app, api_key = await merchant_service.add_app(
            session, merchant, "Demo Shop", webhook_url="http://localhost:9000/webhooks"
        )
        print(f"Created app {app.app_id}")
        print(f"API key (shown once): {api_key}")


if __name__ == "__main__":
    asyncio.run(main())
