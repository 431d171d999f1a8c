"""Shared pytest fixtures for the account service tests."""

from datetime import timedelta

import pytest

from account_service.application.services.account_service import AccountLifecycleService
from account_service.application.services.auth_gate import AuthGate
from account_service.infrastructure.persistence.sqlite import SQLiteCredentialStore
from account_service.services.passwords import PasswordHasher
from account_service.services.tokens import TokenGenerator

from tests.test_doubles import TEST_PASSWORD, TEST_SECRET, FrozenClock, RecordingEmailDispatcher


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(tmp_path):
    store = SQLiteCredentialStore(tmp_path / "accounts.db")
    store.open()
    yield store
    store.close()


@pytest.fixture
def dispatcher():
    return RecordingEmailDispatcher()


@pytest.fixture(scope="session")
def password_hasher():
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_generator(clock):
    return TokenGenerator(secret_key=TEST_SECRET, clock=clock)


@pytest.fixture
def auth_gate(token_generator):
    return AuthGate(token_generator)


@pytest.fixture
def account_service(store, password_hasher, token_generator, dispatcher, clock):
    return AccountLifecycleService(
        store=store,
        password_hasher=password_hasher,
        token_generator=token_generator,
        email_dispatcher=dispatcher,
        frontend_base_url="https://bankofatlantic.co.uk/",
        verification_ttl=timedelta(hours=24),
        reset_ttl=timedelta(hours=1),
        clock=clock,
    )


@pytest.fixture
def register(account_service):
    """Register an account with sensible defaults."""

    def _register(email="a@x.com", password=TEST_PASSWORD, **kwargs):
        kwargs.setdefault("first_name", "Ada")
        kwargs.setdefault("last_name", "Lovelace")
        kwargs.setdefault("account_type", "domiciliary")
        return account_service.register(email=email, password=password, **kwargs)

    return _register


@pytest.fixture
def verified_account(account_service, register):
    result = register()
    return account_service.verify_account(result.verification_token)
