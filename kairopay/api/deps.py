"""Shared FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay.auth.credentials import AuthContext, authenticate
from kairopay.auth.session_tokens import SessionTokenVerifier
from kairopay.db.session import SessionLocal
from kairopay.errors import APIError, ErrorCode
from kairopay.notify.webhook import WebhookDispatcher
from kairopay.services.pricing import PriceOracle, default_price_oracle


async def get_db():
    async with SessionLocal() as db:
        yield db


def get_webhooks(request: Request) -> WebhookDispatcher:
    return request.app.state.webhooks


def get_session_verifier(request: Request) -> SessionTokenVerifier:
    return request.app.state.session_verifier


def get_price_oracle() -> PriceOracle:
    return default_price_oracle


async def require_app_auth(
    app_id: str,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    verifier: SessionTokenVerifier = Depends(get_session_verifier),
) -> AuthContext:
    """API key or session token, scoped to the ``app_id`` in the path."""
    result = await authenticate(db, authorization, verifier, expected_app_id=app_id)
    if not result.ok:
        raise APIError(ErrorCode.UNAUTHORIZED, result.error.message)
    return result.context


def envelope(data) -> dict:
    return {"success": True, "data": data}
