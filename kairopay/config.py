"""Runtime settings read from the environment (and a local ``.env``)."""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


# Hosted checkout page; checkout_url = APP_URL/order/<order_id>
APP_URL = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")

# Webhook signing and delivery
API_SECRET_KEY = os.getenv("API_SECRET_KEY") or "dev_secret"
WEBHOOK_TIMEOUT_SECONDS = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10"))
WEBHOOK_QUEUE_SIZE = int(os.getenv("WEBHOOK_QUEUE_SIZE", "1000"))
WEBHOOK_WORKERS = int(os.getenv("WEBHOOK_WORKERS", "2"))

# pbkdf2 iterations for stored API key hashes
API_KEY_HASH_ROUNDS = int(os.getenv("API_KEY_HASH_ROUNDS", "29000"))

# Privy session tokens
PRIVY_APP_ID = os.getenv("PRIVY_APP_ID", "")
PRIVY_VERIFICATION_KEY = os.getenv("PRIVY_VERIFICATION_KEY", "").replace("\\n", "\n")
PRIVY_ISSUER = os.getenv("PRIVY_ISSUER", "privy.io")
PRIVY_JWT_ALGORITHMS = _env_list("PRIVY_JWT_ALGORITHMS", "ES256")

ALLOWED_ORIGINS = _env_list(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:3001,http://localhost:3002",
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CREATE_TABLES_ON_STARTUP = _env_bool("CREATE_TABLES_ON_STARTUP")
