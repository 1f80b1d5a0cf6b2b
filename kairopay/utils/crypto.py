"""API key hashing and webhook signatures."""

import hashlib
import hmac
import json
from typing import Any, Mapping

from passlib.context import CryptContext

from kairopay import config

SIGNATURE_SCHEME = "sha256"

api_key_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=config.API_KEY_HASH_ROUNDS,
)


def hash_api_key(api_key: str) -> str:
    """Salted, iterated one-way hash of an API key."""
    return api_key_context.hash(api_key)


def verify_api_key(api_key: str, hashed_key: str) -> bool:
    """Check a plaintext key against its stored hash; never raises."""
    if not api_key or not hashed_key:
        return False
    try:
        return api_key_context.verify(api_key, hashed_key)
    except (ValueError, TypeError):
        # unrecognised or corrupted hash
        return False


def canonical_json(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def generate_webhook_signature(payload: Mapping[str, Any], secret: str) -> str:
    """Hex HMAC-SHA256 of the compact JSON form of ``payload``."""
    return hmac.new(
        secret.encode(),
        canonical_json(payload).encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_webhook_signature(payload: Mapping[str, Any], signature: str, secret: str) -> bool:
    """Receiver-side check of a ``sha256=<hex>`` header against the event fields.

    ``payload`` may be the delivered body; its ``signature`` field is ignored.
    """
    event = {key: value for key, value in payload.items() if key != "signature"}
    expected = f"{SIGNATURE_SCHEME}={generate_webhook_signature(event, secret)}"
    return hmac.compare_digest(expected, signature or "")
