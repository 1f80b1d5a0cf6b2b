"""Verification of Privy-issued session tokens (JWT access tokens)."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import jwt

from kairopay import config

logger = logging.getLogger(__name__)


class SessionTokenError(Exception):
    """The token could not be accepted; ``message`` is safe to show callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class SessionTokenVerifier:
    verification_key: str
    app_id: str = ""
    issuer: str = "privy.io"
    algorithms: list[str] = field(default_factory=lambda: ["ES256"])
    leeway: int = 0

    @classmethod
    def from_env(cls) -> "SessionTokenVerifier":
        return cls(
            verification_key=config.PRIVY_VERIFICATION_KEY,
            app_id=config.PRIVY_APP_ID,
            issuer=config.PRIVY_ISSUER,
            algorithms=list(config.PRIVY_JWT_ALGORITHMS),
        )

    @property
    def configured(self) -> bool:
        return bool(self.verification_key)

    def verify(self, token: str) -> str:
        """Return the subject DID carried by a valid token."""
        if not self.configured:
            raise SessionTokenError("Session authentication is not configured")

        options = {"require": ["exp", "sub"]}
        audience: Optional[str] = self.app_id or None
        if audience is None:
            options["verify_aud"] = False

        try:
            claims = jwt.decode(
                token,
                self.verification_key,
                algorithms=self.algorithms,
                audience=audience,
                issuer=self.issuer or None,
                leeway=self.leeway,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            raise SessionTokenError("Session token has expired")
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected session token: %s", exc)
            raise SessionTokenError("Invalid session token")

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise SessionTokenError("Invalid session token")
        return subject
