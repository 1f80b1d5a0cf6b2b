"""Prefixed identifiers and API key secrets.

Every random suffix is drawn from :mod:`secrets`. Uniqueness is not retried
here: the unique indexes on the stored records reject a collision.
"""

import re
import secrets

ALPHANUMERIC = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
# No I, O, i, l, o: keys get copied by hand
API_KEY_ALPHABET = "0123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz"

ID_SUFFIX_LENGTH = 16
API_KEY_SUFFIX_LENGTH = 48

MERCHANT_ID_PREFIX = "m_"
APP_ID_PREFIX = "app_"
ORDER_ID_PREFIX = "ord_"
API_KEY_PREFIX = "sk"

# Leading characters of a key stored in clear for lookup
API_KEY_LOOKUP_LENGTH = 12

API_KEY_PATTERN = re.compile(
    rf"^{API_KEY_PREFIX}[{re.escape(API_KEY_ALPHABET)}]{{{API_KEY_SUFFIX_LENGTH}}}$"
)


def random_string(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_merchant_id() -> str:
    return MERCHANT_ID_PREFIX + random_string(ALPHANUMERIC, ID_SUFFIX_LENGTH)


def generate_app_id() -> str:
    return APP_ID_PREFIX + random_string(ALPHANUMERIC, ID_SUFFIX_LENGTH)


def generate_order_id() -> str:
    return ORDER_ID_PREFIX + random_string(ALPHANUMERIC, ID_SUFFIX_LENGTH)


def generate_api_key() -> str:
    return API_KEY_PREFIX + random_string(API_KEY_ALPHABET, API_KEY_SUFFIX_LENGTH)


def looks_like_api_key(token: str) -> bool:
    return token.startswith(API_KEY_PREFIX)


def is_well_formed_api_key(token: str) -> bool:
    return bool(API_KEY_PATTERN.match(token))


def api_key_lookup_prefix(api_key: str) -> str:
    return api_key[:API_KEY_LOOKUP_LENGTH]
