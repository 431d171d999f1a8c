"""ASGI entrypoint for the accounts API."""

import uvicorn

from .core.app_factory import create_application
from .core.config import Settings

app = create_application()


def run() -> None:
    """Serve the API with uvicorn on ``API_HOST``/``API_PORT``."""
    settings = Settings()
    uvicorn.run("account_service.main:app", host=settings.api_host, port=settings.api_port)


__all__ = ("app", "run")
