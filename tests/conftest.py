# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest

from pkg_authn.adapters.jwt.signing_key import SigningKey
from pkg_authn.adapters.jwt.token_codec import JWTTokenCodec
from pkg_authn.adapters.memory.stores import (
    InMemoryAccountStore,
    InMemoryLoginAttemptLog,
    InMemorySessionRegistry,
)
from pkg_authn.application.principal_builder import PrincipalBuilder
from pkg_authn.application.use_cases.login import LoginUseCase
from pkg_authn.config.settings import AuthSettings
from pkg_authn.domain.constants import AccountStatus
from pkg_authn.domain.entities import AccountSnapshot
from pkg_authn.domain.lockout import LockoutPolicy

SECRET = "0123456789abcdef0123456789abcdef"  # 32 bytes -> HS256
NOW = datetime(2031, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeVerifier:
    """Accepts a password when the stored hash is 'hash:<password>'."""

    def __init__(self) -> None:
        self.calls = 0

    def verify(self, raw_password, password_hash):
        self.calls += 1
        return password_hash == f"hash:{raw_password}"


def make_account(**overrides) -> AccountSnapshot:
    fields = dict(
        id=42,
        tenant_id=7,
        email="admin@demo.example",
        display_name="Demo Admin",
        employee_code="E-0042",
        password_hash="hash:s3cret",
        status=AccountStatus.ACTIVE,
        role_codes=("ADMIN",),
    )
    fields.update(overrides)
    return AccountSnapshot(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AuthSettings(
        jwt_secret=SECRET,
        access_token_ttl_seconds=900,
        refresh_token_ttl_seconds=86400,
        max_login_attempts=5,
        lockout_duration_seconds=900,
    )


@pytest.fixture
def codec(clock):
    return JWTTokenCodec(SigningKey.from_secret(SECRET), 900, 86400, clock=clock)


@pytest.fixture
def principal():
    return PrincipalBuilder().build(make_account(role_codes=("ADMIN", "CLERK")))


@pytest.fixture
def accounts():
    return InMemoryAccountStore([make_account()])


@pytest.fixture
def sessions():
    return InMemorySessionRegistry()


@pytest.fixture
def attempts():
    return InMemoryLoginAttemptLog()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def login(accounts, verifier, sessions, attempts, codec, clock, settings):
    return LoginUseCase(
        accounts=accounts,
        credentials=verifier,
        sessions=sessions,
        attempts=attempts,
        token_codec=codec,
        lockout=LockoutPolicy.from_settings(settings),
        clock=clock,
    )
