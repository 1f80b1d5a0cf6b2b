import asyncio
import datetime
import os

# cheap hashing for the suite; read when kairopay.config is imported
os.environ.setdefault("API_KEY_HASH_ROUNDS", "1000")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import kairopay.api.deps as deps
import kairopay.models  # noqa: F401
from kairopay.auth.session_tokens import SessionTokenVerifier
from kairopay.db.base_class import Base
from kairopay.main import app

SESSION_SECRET = "test-session-secret-with-enough-length-for-hs256"
PRIVY_APP_ID = "test-app"


class RecordingWebhooks:
    """Stands in for the dispatcher: keeps submitted events in order."""

    def __init__(self):
        self.events = []

    def submit(self, url, event):
        self.events.append((url, event))
        return True

    def of_type(self, event_type):
        return [event for _, event in self.events if event["event"] == event_type]


def make_verifier():
    return SessionTokenVerifier(
        verification_key=SESSION_SECRET,
        app_id=PRIVY_APP_ID,
        issuer="privy.io",
        algorithms=["HS256"],
    )


def make_session_token(sub, expires_in=datetime.timedelta(minutes=5), **claims):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {"sub": sub, "iss": "privy.io", "aud": PRIVY_APP_ID, "iat": now, "exp": now + expires_in}
    payload.update(claims)
    return jwt.encode(payload, SESSION_SECRET, algorithm="HS256")


def setup_test_db(path):
    # NullPool: TestClient and asyncio.run use different event loops
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    TestingSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)

    async def init_models():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    return engine, TestingSessionLocal


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    engine, TestingSessionLocal = setup_test_db(tmp_path / "test.db")
    monkeypatch.setattr(deps, "SessionLocal", TestingSessionLocal)
    yield TestingSessionLocal
    asyncio.run(engine.dispose())


@pytest.fixture
def webhooks():
    return RecordingWebhooks()


@pytest.fixture
def client(session_factory, webhooks):
    verifier = make_verifier()
    app.dependency_overrides[deps.get_webhooks] = lambda: webhooks
    app.dependency_overrides[deps.get_session_verifier] = lambda: verifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def run_db(session_factory, func):
    """Run ``await func(db)`` in a fresh session and return its result."""

    async def runner():
        async with session_factory() as db:
            return await func(db)

    return asyncio.run(runner())


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def register_merchant(client, privy_did="did:privy:alice", **wallets):
    response = client.post("/api/merchant/register", json={"privy_did": privy_did, **wallets})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_app(client, privy_did="did:privy:alice", name="Shop", webhook_url=None):
    body = {"privy_did": privy_did, "name": name}
    if webhook_url is not None:
        body["webhook_url"] = webhook_url
    response = client.post("/api/merchant/register/app", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_order(client, app_data, **body):
    body.setdefault("amount_usd", 25.0)
    response = client.post(
        f"/api/apps/{app_data['app_id']}/orders", json=body, headers=bearer(app_data["api_key"])
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def submit_tx(client, order_id, tx_hash="0xabc", **overrides):
    body = {
        "tx_hash": tx_hash,
        "chain": "base",
        "asset": "USDC",
        "from": "0xcustomer",
        "to": "0xmerchant",
        "amount": 25.0,
    }
    body.update(overrides)
    return client.post(f"/api/orders/{order_id}/tx", json=body)


@pytest.fixture
def merchant_app(client):
    """A registered merchant with one app (no default webhook)."""
    register_merchant(client)
    return create_app(client)
