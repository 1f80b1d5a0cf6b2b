"""Bearer-token authentication resolving to a merchant/app context.

A bearer token is either an app API key (``sk...``) or a Privy session
token. :func:`classify_token` decides which, and each credential kind has a
resolver with the same ``resolve(db, token, expected_app_id)`` signature.
Resolvers report failures as an :class:`AuthResult` instead of raising.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from kairopay.auth.session_tokens import SessionTokenError, SessionTokenVerifier
from kairopay.models.merchant import App, Merchant
from kairopay.services import merchant_service
from kairopay.utils.crypto import verify_api_key
from kairopay.utils.ids import api_key_lookup_prefix, is_well_formed_api_key, looks_like_api_key

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    merchant_id: str
    app_id: str
    privy_did: str


class AuthFailure(str, Enum):
    MISSING_HEADER = "missing_header"
    MALFORMED_API_KEY = "malformed_api_key"
    INVALID_API_KEY = "invalid_api_key"
    APP_MISMATCH = "app_mismatch"
    INVALID_SESSION = "invalid_session"
    MERCHANT_NOT_FOUND = "merchant_not_found"
    APP_NOT_FOUND = "app_not_found"


@dataclass(frozen=True)
class AuthError:
    reason: AuthFailure
    message: str


@dataclass(frozen=True)
class AuthResult:
    context: Optional[AuthContext] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.context is not None

    @classmethod
    def success(cls, context: AuthContext) -> "AuthResult":
        return cls(context=context)

    @classmethod
    def failure(cls, reason: AuthFailure, message: str) -> "AuthResult":
        return cls(error=AuthError(reason, message))


@dataclass(frozen=True)
class ApiKeyCredential:
    token: str


@dataclass(frozen=True)
class SessionCredential:
    token: str


Credential = Union[ApiKeyCredential, SessionCredential]


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def classify_token(token: str) -> Credential:
    if looks_like_api_key(token):
        return ApiKeyCredential(token)
    return SessionCredential(token)


class ApiKeyResolver:
    async def resolve(
        self, db: AsyncSession, token: str, expected_app_id: Optional[str] = None
    ) -> AuthResult:
        if not is_well_formed_api_key(token):
            return AuthResult.failure(AuthFailure.MALFORMED_API_KEY, "Invalid API key format")

        # Only apps sharing the key's clear prefix need a hash comparison.
        result = await db.execute(
            select(App, Merchant)
            .join(Merchant, App.merchant_pk == Merchant.id)
            .where(App.api_key_prefix == api_key_lookup_prefix(token))
        )
        for app, merchant in result.all():
            # pbkdf2 blocks for tens of ms; never on the event loop
            if not await run_in_threadpool(verify_api_key, token, app.api_key_hash):
                continue
            if expected_app_id and app.app_id != expected_app_id:
                return AuthResult.failure(
                    AuthFailure.APP_MISMATCH, "API key does not belong to this app"
                )
            return AuthResult.success(
                AuthContext(
                    merchant_id=merchant.merchant_id,
                    app_id=app.app_id,
                    privy_did=merchant.privy_did,
                )
            )

        return AuthResult.failure(AuthFailure.INVALID_API_KEY, "Invalid API key")


class SessionTokenResolver:
    def __init__(self, verifier: SessionTokenVerifier):
        self.verifier = verifier

    async def resolve(
        self, db: AsyncSession, token: str, expected_app_id: Optional[str] = None
    ) -> AuthResult:
        try:
            privy_did = self.verifier.verify(token)
        except SessionTokenError as exc:
            return AuthResult.failure(AuthFailure.INVALID_SESSION, exc.message)

        merchant = await merchant_service.get_merchant_by_privy_did(db, privy_did)
        if merchant is None:
            return AuthResult.failure(AuthFailure.MERCHANT_NOT_FOUND, "Merchant not found")

        if expected_app_id:
            app = merchant_service.find_app(merchant, expected_app_id)
            if app is None:
                return AuthResult.failure(
                    AuthFailure.APP_NOT_FOUND, "App not found for this merchant"
                )
        else:
            # Without an expected app the first app is used (see DESIGN.md).
            if not merchant.apps:
                return AuthResult.failure(AuthFailure.APP_NOT_FOUND, "Merchant has no apps")
            app = merchant.apps[0]

        return AuthResult.success(
            AuthContext(
                merchant_id=merchant.merchant_id,
                app_id=app.app_id,
                privy_did=merchant.privy_did,
            )
        )


async def authenticate(
    db: AsyncSession,
    authorization: Optional[str],
    verifier: SessionTokenVerifier,
    expected_app_id: Optional[str] = None,
) -> AuthResult:
    """Resolve an ``Authorization`` header value to an :class:`AuthResult`."""
    token = extract_bearer_token(authorization)
    if token is None:
        return AuthResult.failure(AuthFailure.MISSING_HEADER, "Missing Authorization header")

    credential = classify_token(token)
    if isinstance(credential, ApiKeyCredential):
        resolver = ApiKeyResolver()
    else:
        resolver = SessionTokenResolver(verifier)

    result = await resolver.resolve(db, credential.token, expected_app_id)
    if not result.ok:
        logger.info(
            "Authentication failed (%s) for app %s", result.error.reason.value, expected_app_id
        )
    return result
