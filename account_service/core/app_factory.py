from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.account_service import AccountLifecycleService
from ..application.services.auth_gate import AuthGate
from ..domain.errors import AccountError, InvalidInput
from ..domain.ports.notifications import EmailDispatcher
from ..infrastructure.persistence.sqlite import SQLiteCredentialStore
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import me as me_router
from ..presentation.api.schemas.auth import MessageResponse
from ..services.email_service import build_email_dispatcher
from ..services.passwords import PasswordHasher
from ..services.tokens import TokenGenerator

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    email_dispatcher: Optional[EmailDispatcher] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Bank of Atlantic Accounts API",
        lifespan=_create_lifespan(settings, email_dispatcher),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(AccountError, _account_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(auth_router.router)
    app.include_router(me_router.router)

    @app.get("/")
    async def health() -> Dict[str, Any]:
        return {
            "success": True,
            "message": "Bank of Atlantic API is running",
            "time": datetime.now(timezone.utc).isoformat(),
        }

    return app


async def _account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    if exc.internal:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.public_message, "code": exc.code},
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Forgot-password answers identically for every body.
    if request.url.path == auth_router.FORGOT_PASSWORD_PATH:
        return JSONResponse(
            content=MessageResponse(message=auth_router.FORGOT_PASSWORD_MESSAGE).model_dump()
        )
    fields = [(".".join(str(part) for part in error["loc"]), error["type"]) for error in exc.errors()]
    logger.info("%s %s rejected: %s", request.method, request.url.path, fields)
    return await _account_error_handler(request, InvalidInput())


def _create_lifespan(settings: Settings, email_dispatcher: Optional[EmailDispatcher]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        store = SQLiteCredentialStore(settings.database_path)
        dispatcher = email_dispatcher or build_email_dispatcher(settings)
        token_generator = TokenGenerator(
            secret_key=settings.session_token_secret,
            algorithm=settings.session_token_algorithm,
            session_expiration_minutes=settings.session_token_exp_minutes,
        )
        account_service = AccountLifecycleService(
            store=store,
            password_hasher=PasswordHasher(rounds=settings.password_hash_rounds),
            token_generator=token_generator,
            email_dispatcher=dispatcher,
            frontend_base_url=settings.frontend_base_url,
            verification_ttl=timedelta(hours=settings.verification_token_ttl_hours),
            reset_ttl=timedelta(minutes=settings.reset_token_ttl_minutes),
        )

        container = ApplicationContainer(
            settings=settings,
            store=store,
            email_dispatcher=dispatcher,
            token_generator=token_generator,
            account_service=account_service,
            auth_gate=AuthGate(token_generator),
        )
        app.state.container = container  # type: ignore[attr-defined]

        store.open()
        dispatcher.open()
        logger.info("Accounts API ready")
        try:
            yield
        finally:
            dispatcher.close()
            store.close()

    return lifespan
