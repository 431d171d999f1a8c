from dataclasses import dataclass

from ..application.services.account_service import AccountLifecycleService
from ..application.services.auth_gate import AuthGate
from ..domain.ports.notifications import EmailDispatcher
from ..domain.ports.persistence import CredentialStore
from ..services.tokens import TokenGenerator
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    store: CredentialStore
    email_dispatcher: EmailDispatcher
    token_generator: TokenGenerator
    account_service: AccountLifecycleService
    auth_gate: AuthGate
