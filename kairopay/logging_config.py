import logging

from kairopay import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for the API process."""
    logging.basicConfig(level=level or config.LOG_LEVEL, format=LOG_FORMAT)
    # httpx logs every request at INFO; webhook outcomes are logged by the dispatcher
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_api_error(logger: logging.Logger, method: str, path: str, **context) -> None:
    """Log the exception currently being handled together with route context."""
    details = " ".join(f"{key}={value}" for key, value in context.items() if value is not None)
    logger.exception("%s %s failed %s", method, path, details)
