import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kairopay import config
from kairopay.api import app_router, checkout_router, merchant_router
from kairopay.api.deps import envelope, get_db
from kairopay.auth.session_tokens import SessionTokenVerifier
from kairopay.db.session import close_db, init_db
from kairopay.errors import APIError, ErrorCode, register_exception_handlers
from kairopay.logging_config import configure_logging
from kairopay.notify.webhook import WebhookDispatcher
from kairopay.utils.clock import isoformat, utcnow

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.CREATE_TABLES_ON_STARTUP:
        await init_db()
    # one dispatcher per running loop; its queue and workers live there
    app.state.webhooks = WebhookDispatcher()
    await app.state.webhooks.start()
    try:
        yield
    finally:
        await app.state.webhooks.stop()
        await close_db()


app = FastAPI(title="KairoPay API", version="0.1.0", lifespan=lifespan)
app.state.session_verifier = SessionTokenVerifier.from_env()
if not app.state.session_verifier.configured:
    logger.warning("PRIVY_VERIFICATION_KEY not set; only API keys can authenticate")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-api-key"],
    max_age=86400,
)
register_exception_handlers(app)

app.include_router(merchant_router.router, prefix="/api")
app.include_router(app_router.router, prefix="/api")
app.include_router(checkout_router.router, prefix="/api")


@app.get("/api/health")
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        raise APIError(ErrorCode.DATABASE_ERROR, "Database connection failed")
    return envelope(
        {
            "status": "healthy",
            "database": "connected",
            "timestamp": isoformat(utcnow()),
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
