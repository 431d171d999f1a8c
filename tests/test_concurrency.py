"""Races on the same email or token: exactly one caller may win."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from account_service.domain.errors import AccountError, Conflict, InvalidOrExpiredToken, NotFound

from tests.test_doubles import TEST_PASSWORD

WORKERS = 8


def _race(func, *args):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(func, *args) for _ in range(WORKERS)]
    outcomes = []
    for future in futures:
        try:
            outcomes.append(future.result())
        except AccountError as exc:
            outcomes.append(exc)
    return outcomes


def _split(outcomes):
    failures = [o for o in outcomes if isinstance(o, AccountError)]
    successes = [o for o in outcomes if not isinstance(o, AccountError)]
    return successes, failures


class TestConcurrentLifecycle:
    def test_concurrent_registrations_create_one_account(self, account_service, store, dispatcher):
        successes, failures = _split(
            _race(account_service.register, "Ada", "Lovelace", "race@x.com", TEST_PASSWORD)
        )

        assert len(successes) == 1
        assert all(isinstance(f, Conflict) for f in failures)
        assert store.find_one({"email": "race@x.com"}).id == successes[0].account.id
        assert len(dispatcher.sent) == 1

    def test_concurrent_verifications_succeed_once(self, account_service, register):
        token = register().verification_token

        successes, failures = _split(_race(account_service.verify_account, token))

        assert len(successes) == 1
        assert len(failures) == WORKERS - 1
        assert all(isinstance(f, NotFound) for f in failures)

    def test_concurrent_resets_succeed_once(self, account_service, verified_account, dispatcher):
        account_service.forgot_password("a@x.com")
        token = dispatcher.last.token

        successes, failures = _split(_race(account_service.reset_password, token, "brand-new"))

        assert len(successes) == 1
        assert all(isinstance(f, InvalidOrExpiredToken) for f in failures)

    @pytest.mark.parametrize("rounds", range(3))
    def test_verification_never_double_spends(self, account_service, register, rounds):
        token = register(email=f"user{rounds}@x.com").verification_token

        successes, _ = _split(_race(account_service.verify_account, token))

        assert len(successes) == 1
