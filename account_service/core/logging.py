import logging
import os

LOGGER_NAMESPACE = "account_service"


def configure_logging() -> None:
    """
    Configure log output for the service.

    ``LOG_LEVEL`` applies to the ``account_service`` loggers; libraries stay at
    WARNING.
    """
    level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if not isinstance(logging.getLevelName(level), int):
        raise RuntimeError(f"Environment variable LOG_LEVEL has unknown level: {level}")
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
