# tests/test_login.py
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import logging

import pytest

from pkg_authn.adapters.memory.stores import InMemoryLoginAttemptLog
from pkg_authn.application.use_cases.authenticate import AuthenticateTokenUseCase
from pkg_authn.application.use_cases.authorize import AuthorizeAccessUseCase
from pkg_authn.application.use_cases.login import LoginUseCase
from pkg_authn.application.use_cases.logout import LogoutUseCase
from pkg_authn.application.use_cases.refresh import RefreshTokenUseCase
from pkg_authn.application.use_cases.unlock import UnlockAccountUseCase
from pkg_authn.domain.constants import AccountStatus, FailureReason
from pkg_authn.domain.entities import LockoutState, LoginAttempt, LoginRequest
from pkg_authn.domain.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    AccountNotFoundError,
    AuthorizationError,
    CredentialsInvalidError,
    LockoutUpdateError,
    TokenExpiredError,
    TokenTypeMismatchError,
)
from pkg_authn.domain.lockout import LockoutPolicy
from pkg_authn.domain.value_objects import require_roles, require_tenant

from conftest import NOW, make_account


def _request(password="s3cret", email="Admin@Demo.Example"):
    return LoginRequest(email=email, password=password, ip_address="10.0.0.1", user_agent="pytest")


# --- login -----------------------------------------------------------------


def test_successful_login(login, codec, sessions, attempts, accounts):
    result = login.execute(_request())

    assert result.token_type == "Bearer"
    assert result.expires_in == 900
    assert result.session_id is not None
    assert result.user_info.roles == frozenset({"ADMIN"})
    assert result.user_info.last_login_at == NOW
    assert not result.must_change_password

    access = codec.verify(result.access_token)
    assert access.is_access and access.account_id == 42 and access.roles == frozenset({"ADMIN"})
    assert codec.is_refresh_token(result.refresh_token)

    session = sessions.get(result.session_id)
    assert session.account_id == 42 and session.tenant_id == 7
    assert session.metadata.access_expires_at == NOW + timedelta(seconds=900)

    assert attempts.attempts[-1].success
    assert attempts.attempts[-1].email == "admin@demo.example"
    assert accounts.find_by_id(42).last_login_at == NOW


def test_wrong_password_counts_failure(login, accounts, attempts, sessions):
    with pytest.raises(CredentialsInvalidError):
        login.execute(_request(password="nope"))

    assert accounts.find_by_id(42).lockout_state == LockoutState(1, None)
    assert attempts.attempts[-1].failure_reason is FailureReason.INVALID_CREDENTIALS
    assert sessions.active_sessions(42) == []


def test_unknown_email(login, attempts):
    with pytest.raises(AccountNotFoundError):
        login.execute(_request(email="ghost@demo.example"))
    assert not attempts.attempts[-1].success


def test_five_failures_lock_sixth_attempt_without_verifier(login, accounts, verifier, attempts):
    for _ in range(5):
        with pytest.raises(CredentialsInvalidError):
            login.execute(_request(password="wrong"))

    state = accounts.find_by_id(42).lockout_state
    assert state == LockoutState(5, NOW + timedelta(seconds=900))
    assert verifier.calls == 5

    with pytest.raises(AccountLockedError) as excinfo:
        login.execute(_request())

    assert excinfo.value.locked_until == NOW + timedelta(seconds=900)
    assert verifier.calls == 5
    assert attempts.attempts[-1].failure_reason is FailureReason.ACCOUNT_LOCKED


def test_login_allowed_once_lock_elapsed(login, accounts, clock):
    accounts.save(make_account(failed_login_attempts=5, account_locked_until=NOW + timedelta(seconds=900)))

    clock.advance(seconds=900)
    result = login.execute(_request())

    assert result.access_token
    assert accounts.find_by_id(42).lockout_state == LockoutState(0, None)


def test_success_resets_counter(login, accounts):
    for _ in range(3):
        with pytest.raises(CredentialsInvalidError):
            login.execute(_request(password="wrong"))

    login.execute(_request())
    assert accounts.find_by_id(42).lockout_state == LockoutState(0, None)


def test_disabled_account(login, accounts):
    accounts.save(make_account(status=AccountStatus.INACTIVE))
    with pytest.raises(AccountDisabledError):
        login.execute(_request())


def test_expired_password_forces_change(login, accounts):
    accounts.save(make_account(password_expires_at=NOW - timedelta(days=1)))
    result = login.execute(_request())
    assert result.must_change_password
    assert result.password_expires_at == NOW - timedelta(days=1)


def test_tenant_scoped_lookup(login, accounts):
    request = _request()
    request.tenant_id = 99
    with pytest.raises(AccountNotFoundError):
        login.execute(request)


class _BrokenStore:
    def __init__(self, inner):
        self.inner = inner

    def find_by_id(self, account_id):
        return self.inner.find_by_id(account_id)

    def find_by_email(self, email, tenant_id=None):
        return self.inner.find_by_email(email, tenant_id)

    def update_lockout_state(self, account_id, transition, *, last_login_at=None):
        raise RuntimeError("database is down")


def test_failed_lockout_write_fails_closed(accounts, verifier, sessions, attempts, codec, clock, settings):
    login = LoginUseCase(
        accounts=_BrokenStore(accounts),
        credentials=verifier,
        sessions=sessions,
        attempts=attempts,
        token_codec=codec,
        lockout=LockoutPolicy.from_settings(settings),
        clock=clock,
    )
    with pytest.raises(LockoutUpdateError):
        login.execute(_request(password="wrong"))
    with pytest.raises(RuntimeError):
        login.execute(_request())
    assert sessions.active_sessions(42) == []


def test_concurrent_failures_are_not_lost(accounts):
    policy = LockoutPolicy(max_attempts=1000, lock_duration=timedelta(minutes=15))

    def fail(_):
        accounts.update_lockout_state(42, lambda s: policy.on_failed_attempt(s, NOW))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(fail, range(200)))

    assert accounts.find_by_id(42).failed_login_attempts == 200


class _RacingVerifier:
    """Accepts the password, but only after a concurrent wrong-password
    attempt has committed and locked the account."""

    def __init__(self, accounts, policy):
        self.accounts = accounts
        self.policy = policy

    def verify(self, raw_password, password_hash):
        state = self.accounts.update_lockout_state(42, lambda s: self.policy.on_failed_attempt(s, NOW))
        assert self.policy.is_locked(state, NOW)
        return True


def test_success_does_not_clear_lock_set_by_concurrent_failure(accounts, sessions, attempts, codec, clock, settings):
    accounts.save(make_account(failed_login_attempts=4))
    policy = LockoutPolicy.from_settings(settings)
    login = LoginUseCase(
        accounts=accounts,
        credentials=_RacingVerifier(accounts, policy),
        sessions=sessions,
        attempts=attempts,
        token_codec=codec,
        lockout=policy,
        clock=clock,
    )

    with pytest.raises(AccountLockedError) as excinfo:
        login.execute(_request())

    stored = accounts.find_by_id(42)
    assert stored.lockout_state == LockoutState(5, NOW + timedelta(seconds=900))
    assert stored.last_login_at is None
    assert excinfo.value.locked_until == NOW + timedelta(seconds=900)
    assert sessions.active_sessions(42) == []
    assert attempts.attempts[-1].failure_reason is FailureReason.ACCOUNT_LOCKED


def test_malformed_email_is_rejected_without_verifier(login, verifier, attempts):
    with pytest.raises(AccountNotFoundError):
        login.execute(_request(email="  Not-An-Email "))
    assert verifier.calls == 0
    assert attempts.attempts[-1].email == "not-an-email"


# --- abuse detection and operator unlock --------------------------------


def _failure(ip, at, email="someone@demo.example"):
    return LoginAttempt(
        email=email,
        success=False,
        attempted_at=at,
        ip_address=ip,
        user_agent="pytest",
        failure_reason=FailureReason.INVALID_CREDENTIALS,
    )


def test_many_failures_from_one_ip_are_flagged(login, attempts, caplog):
    for i in range(20):
        attempts.record(_failure("10.0.0.1", NOW - timedelta(minutes=i)))

    with caplog.at_level(logging.WARNING, logger="pkg_authn.application.use_cases.login"):
        login.execute(_request())

    assert "Suspicious activity from IP 10.0.0.1: 20 failed attempts" in caplog.text


def test_old_or_foreign_failures_are_not_flagged(login, attempts, caplog):
    for i in range(19):
        attempts.record(_failure("10.0.0.1", NOW - timedelta(minutes=i)))
    attempts.record(_failure("10.0.0.1", NOW - timedelta(hours=2)))
    attempts.record(_failure("10.9.9.9", NOW))

    with caplog.at_level(logging.WARNING, logger="pkg_authn.application.use_cases.login"):
        login.execute(_request())

    assert "Suspicious activity" not in caplog.text


def test_windowed_failure_queries():
    log = InMemoryLoginAttemptLog()
    log.record(_failure("10.0.0.1", NOW - timedelta(minutes=5), email="a@demo.example"))
    log.record(_failure("10.0.0.2", NOW - timedelta(minutes=1), email="a@demo.example"))
    log.record(_failure("10.0.0.1", NOW - timedelta(days=1), email="a@demo.example"))
    log.record(_failure("10.0.0.1", NOW, email="b@demo.example"))
    log.record(LoginAttempt("a@demo.example", True, NOW, "10.0.0.1", "pytest"))

    since = NOW - timedelta(hours=1)
    assert log.count_failures(since) == 3
    assert log.count_failures(since, email="A@Demo.Example") == 2
    assert log.count_failures(since, ip_address="10.0.0.1") == 2
    assert log.count_failures(since, email="a@demo.example", ip_address="10.0.0.1") == 1

    recent = log.recent_failures("a@demo.example", since)
    assert [a.ip_address for a in recent] == ["10.0.0.2", "10.0.0.1"]


def test_operator_unlock(login, accounts):
    accounts.save(make_account(failed_login_attempts=5, account_locked_until=NOW + timedelta(minutes=15)))
    with pytest.raises(AccountLockedError):
        login.execute(_request())

    assert UnlockAccountUseCase(accounts=accounts).execute(42) == LockoutState(0, None)
    assert login.execute(_request()).access_token

    with pytest.raises(AccountNotFoundError):
        UnlockAccountUseCase(accounts=accounts).execute(999)


# --- refresh ---------------------------------------------------------------


def test_refresh_issues_access_token_with_current_roles(login, accounts, codec, clock):
    result = login.execute(_request())
    accounts.save(make_account(role_codes=("VIEWER",)))

    clock.advance(minutes=20)
    with pytest.raises(TokenExpiredError):
        codec.verify(result.access_token)

    refreshed = RefreshTokenUseCase(accounts=accounts, token_codec=codec, clock=clock).execute(
        result.refresh_token
    )
    claims = codec.verify(refreshed.access_token)
    assert claims.roles == frozenset({"VIEWER"})
    assert refreshed.refresh_token == result.refresh_token
    assert refreshed.session_id is None


def test_refresh_rejects_access_token(login, accounts, codec):
    result = login.execute(_request())
    with pytest.raises(TokenTypeMismatchError):
        RefreshTokenUseCase(accounts=accounts, token_codec=codec).execute(result.access_token)


def test_refresh_rejects_deleted_or_disabled_account(login, accounts, codec, clock):
    result = login.execute(_request())
    refresh = RefreshTokenUseCase(accounts=accounts, token_codec=codec, clock=clock)

    accounts.save(make_account(status=AccountStatus.SUSPENDED))
    with pytest.raises(AccountDisabledError):
        refresh.execute(result.refresh_token)

    accounts.save(make_account(tenant_id=8))
    with pytest.raises(AccountNotFoundError):
        refresh.execute(result.refresh_token)


# --- authenticate / authorize ----------------------------------------------


def test_authenticate_accepts_access_only(login, codec):
    result = login.execute(_request())
    authenticate = AuthenticateTokenUseCase(token_codec=codec)

    assert authenticate.execute(result.access_token).account_id == 42
    with pytest.raises(TokenTypeMismatchError):
        authenticate.execute(result.refresh_token)


def test_authorize(login, codec):
    claims = codec.verify(login.execute(_request()).access_token)
    authorize = AuthorizeAccessUseCase()

    assert authorize.execute(claims, [require_roles("ADMIN", "MANAGER"), require_tenant(7)]) is claims
    with pytest.raises(AuthorizationError):
        authorize.execute(claims, [require_roles("MANAGER")])
    with pytest.raises(AuthorizationError):
        authorize.execute(claims, [require_roles("ADMIN", "MANAGER", any_of=False)])
    with pytest.raises(AuthorizationError):
        authorize.execute(claims, [require_tenant(8)])


# --- logout ----------------------------------------------------------------


def test_logout(login, sessions):
    result = login.execute(_request())
    logout = LogoutUseCase(sessions=sessions)

    assert logout.execute(result.session_id, 42)
    assert not logout.execute(result.session_id, 42)
    assert not logout.execute(None, 42)
    assert sessions.active_sessions(42) == []
