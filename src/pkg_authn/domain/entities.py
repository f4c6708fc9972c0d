from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from .constants import AccountStatus, FailureReason, TokenType
from .value_objects import (
    authority_to_role,
    credentials_expired,
    ensure_aware,
    lock_in_effect,
    role_to_authority,
    utcnow,
)


@dataclass(frozen=True, slots=True)
class LockoutState:
    """
    Failed-attempt counter and lock deadline of one account.
    """
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.failed_attempts < 0:
            raise ValueError("failed_attempts must be non-negative")
        ensure_aware(self.locked_until, "locked_until")


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """
    Read model of a stored account, as handed over by the account store.
    """
    id: int
    tenant_id: int
    email: str
    display_name: str
    employee_code: Optional[str] = None
    password_hash: Optional[str] = field(default=None, repr=False)
    status: AccountStatus = AccountStatus.ACTIVE
    must_change_password: bool = False
    password_expires_at: Optional[datetime] = None
    failed_login_attempts: int = 0
    account_locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    role_codes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        ensure_aware(self.password_expires_at, "password_expires_at")
        ensure_aware(self.account_locked_until, "account_locked_until")
        ensure_aware(self.last_login_at, "last_login_at")

    @property
    def lockout_state(self) -> LockoutState:
        return LockoutState(self.failed_login_attempts, self.account_locked_until)

    def with_lockout_state(
            self,
            state: LockoutState,
            last_login_at: Optional[datetime] = None,
    ) -> "AccountSnapshot":
        return replace(
            self,
            failed_login_attempts=state.failed_attempts,
            account_locked_until=state.locked_until,
            last_login_at=last_login_at or self.last_login_at,
        )


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated identity built from an account snapshot.

    The eligibility predicates are evaluated against `now` on every call
    and are never cached.
    """
    account_id: int
    tenant_id: int
    email: str
    display_name: str
    employee_code: Optional[str] = None
    password_hash: Optional[str] = field(default=None, repr=False)
    status: AccountStatus = AccountStatus.ACTIVE
    must_change_password: bool = False
    password_expires_at: Optional[datetime] = None
    failed_login_attempts: int = 0
    account_locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    authorities: FrozenSet[str] = frozenset()

    @property
    def username(self) -> str:
        return self.email

    @property
    def roles(self) -> FrozenSet[str]:
        return frozenset(authority_to_role(a) for a in self.authorities)

    # ---- eligibility -----------------------------------------------------

    def is_account_enabled(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    def is_account_non_locked(self, now: Optional[datetime] = None) -> bool:
        return not lock_in_effect(self.account_locked_until, now or utcnow())

    def is_credentials_non_expired(self, now: Optional[datetime] = None) -> bool:
        return not credentials_expired(self.password_expires_at, now or utcnow())

    def is_password_expired(self, now: Optional[datetime] = None) -> bool:
        return not self.is_credentials_non_expired(now)

    # ---- roles -----------------------------------------------------------

    def has_role(self, role_code: str) -> bool:
        return role_to_authority(role_code) in self.authorities

    def has_any_role(self, *role_codes: str) -> bool:
        return any(self.has_role(code) for code in role_codes)


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """
    Typed view of the claims of a verified token.
    """
    subject: str
    account_id: int
    tenant_id: int
    issued_at: datetime
    expires_at: datetime
    token_type: TokenType = TokenType.ACCESS
    employee_code: Optional[str] = None
    display_name: Optional[str] = None
    roles: Optional[FrozenSet[str]] = None

    @property
    def is_access(self) -> bool:
        return self.token_type is TokenType.ACCESS

    @property
    def is_refresh(self) -> bool:
        return self.token_type is TokenType.REFRESH

    def has_role(self, role_code: str) -> bool:
        return role_code in (self.roles or ())

    def has_any_role(self, *role_codes: str) -> bool:
        return any(self.has_role(code) for code in role_codes)

    def has_all_roles(self, *role_codes: str) -> bool:
        return all(self.has_role(code) for code in role_codes)


# --- login flow records ------------------------------------------------------


@dataclass(slots=True)
class LoginRequest:
    email: str
    password: str = field(repr=False)
    tenant_id: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SessionMetadata:
    """
    What the session registry gets to know about a freshly issued token pair.
    """
    issued_at: datetime
    access_expires_at: datetime
    refresh_expires_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LoginAttempt:
    email: str
    success: bool
    attempted_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    failure_reason: Optional[FailureReason] = None


@dataclass(frozen=True, slots=True)
class PrincipalSummary:
    account_id: int
    tenant_id: int
    email: str
    display_name: str
    employee_code: Optional[str]
    roles: FrozenSet[str]
    last_login_at: Optional[datetime]
    account_status: AccountStatus

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalSummary":
        return cls(
            account_id=principal.account_id,
            tenant_id=principal.tenant_id,
            email=principal.email,
            display_name=principal.display_name,
            employee_code=principal.employee_code,
            roles=principal.roles,
            last_login_at=principal.last_login_at,
            account_status=principal.status,
        )


@dataclass(frozen=True, slots=True)
class LoginResult:
    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    expires_in: int
    user_info: PrincipalSummary
    token_type: str = "Bearer"
    session_id: Optional[str] = None
    must_change_password: bool = False
    password_expires_at: Optional[datetime] = None
