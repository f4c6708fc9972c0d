from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol

from .constants import ClaimName
from .entities import (
    AccountSnapshot,
    ClaimSet,
    LockoutState,
    LoginAttempt,
    Principal,
    SessionMetadata,
)


LockoutTransition = Callable[[LockoutState], LockoutState]


class TokenCodec(Protocol):
    """
    Port for issuing and verifying bearer tokens.

    Implementations live in the adapters layer (e.g. the PyJWT codec).
    """

    access_ttl_seconds: int
    refresh_ttl_seconds: int

    def issue_access_token(self, principal: Principal, now: Optional[datetime] = None) -> str:
        ...

    def issue_refresh_token(self, principal: Principal, now: Optional[datetime] = None) -> str:
        ...

    def verify(self, token: str, now: Optional[datetime] = None) -> ClaimSet:
        """
        Verify the given token and project its claims.

        Should:
          - verify signature
          - check expiry and basic claims
        Raises:
          - TokenExpiredError
          - InvalidTokenError (or one of its subclasses)
        """
        ...

    def extract_claim(self, token: str, name: ClaimName) -> Any:
        ...


class AccountStore(Protocol):
    """
    Port for the persistent account records.

    `update_lockout_state` must apply `transition` to the *current* stored
    lockout state atomically for that account (row lock, optimistic version
    check, ...). Two concurrent callers must never both observe the same
    state and both write their result. A transition that raises aborts the
    update: nothing is written, `last_login_at` included, and the exception
    propagates to the caller.
    """

    def find_by_id(self, account_id: int) -> Optional[AccountSnapshot]:
        ...

    def find_by_email(self, email: str, tenant_id: Optional[int] = None) -> Optional[AccountSnapshot]:
        ...

    def update_lockout_state(
            self,
            account_id: int,
            transition: LockoutTransition,
            *,
            last_login_at: Optional[datetime] = None,
    ) -> LockoutState:
        ...


class CredentialVerifier(Protocol):
    def verify(self, raw_password: str, password_hash: Optional[str]) -> bool:
        ...


class SessionRegistry(Protocol):
    def create_session(self, account_id: int, tenant_id: int, metadata: SessionMetadata) -> str:
        """Returns the new session id."""
        ...

    def invalidate_session(self, session_id: str) -> bool:
        ...


class LoginAttemptRecorder(Protocol):
    """
    Audit log of login attempts, with the windowed failure queries used for
    abuse detection.
    """

    def record(self, attempt: LoginAttempt) -> None:
        ...

    def count_failures(
            self,
            since: datetime,
            *,
            email: Optional[str] = None,
            ip_address: Optional[str] = None,
    ) -> int:
        """Failed attempts at or after `since`, narrowed by email and/or IP."""
        ...

    def recent_failures(self, email: str, since: datetime) -> List[LoginAttempt]:
        """Failed attempts for `email` at or after `since`, newest first."""
        ...
