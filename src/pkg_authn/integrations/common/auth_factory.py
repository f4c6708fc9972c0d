from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ...adapters.jwt.token_codec import JWTTokenCodec
from ...application.use_cases.authenticate import AuthenticateTokenUseCase
from ...application.use_cases.authorize import AuthorizeAccessUseCase
from ...application.use_cases.login import LoginUseCase
from ...application.use_cases.logout import LogoutUseCase
from ...application.use_cases.refresh import RefreshTokenUseCase
from ...application.use_cases.unlock import UnlockAccountUseCase
from ...config.settings import AuthSettings
from ...domain.entities import ClaimSet, LockoutState, LoginRequest, LoginResult
from ...domain.lockout import LockoutPolicy
from ...domain.ports import (
    AccountStore,
    CredentialVerifier,
    LoginAttemptRecorder,
    SessionRegistry,
    TokenCodec,
)
from ...domain.value_objects import AccessRequirement


@dataclass(slots=True)
class AuthDependencies:
    """
    Framework-agnostic auth facade.

    Integrations (FastAPI, Strawberry, etc.) adapt this to their own
    dependency / decorator systems. The login-side use cases are optional:
    a service that only verifies tokens wires just the codec.
    """

    auth_use_case: AuthenticateTokenUseCase
    authorize_use_case: AuthorizeAccessUseCase
    login_use_case: Optional[LoginUseCase] = None
    refresh_use_case: Optional[RefreshTokenUseCase] = None
    logout_use_case: Optional[LogoutUseCase] = None
    unlock_use_case: Optional[UnlockAccountUseCase] = None
    cookie_name: str = "access_token"

    # --- Core operations --------------------------------------------------

    def authenticate(self, token: str) -> ClaimSet:
        """Token -> ClaimSet (or raise auth exceptions)."""
        return self.auth_use_case.execute(token)

    def authorize(
            self,
            claims: ClaimSet,
            requirements: Iterable[AccessRequirement],
    ) -> ClaimSet:
        """Check requirements on an existing ClaimSet."""
        return self.authorize_use_case.execute(claims, requirements)

    def login(self, request: LoginRequest) -> LoginResult:
        return self._require(self.login_use_case, "login").execute(request)

    def refresh(self, refresh_token: str) -> LoginResult:
        return self._require(self.refresh_use_case, "refresh").execute(refresh_token)

    def logout(self, session_id: Optional[str], account_id: int) -> bool:
        return self._require(self.logout_use_case, "logout").execute(session_id, account_id)

    def unlock(self, account_id: int) -> LockoutState:
        return self._require(self.unlock_use_case, "unlock").execute(account_id)

    # --- Convenience helpers to build requirements ------------------------

    def require_roles(
            self,
            *,
            any_of: Sequence[str] = (),
            all_of: Sequence[str] = (),
    ) -> AccessRequirement:
        return AccessRequirement(any_of=any_of, all_of=all_of)

    def require_tenant(self, tenant_id: int) -> AccessRequirement:
        return AccessRequirement(tenant_id=tenant_id)

    @staticmethod
    def _require(use_case, name: str):
        if use_case is None:
            raise RuntimeError(f"The {name} use case is not configured")
        return use_case


def create_auth_dependencies(
        *,
        settings: AuthSettings,
        accounts: Optional[AccountStore] = None,
        credentials: Optional[CredentialVerifier] = None,
        sessions: Optional[SessionRegistry] = None,
        attempts: Optional[LoginAttemptRecorder] = None,
        token_codec: Optional[TokenCodec] = None,
) -> AuthDependencies:
    """
    High-level factory: AuthSettings (+ optional stores) -> AuthDependencies.

    - builds a JWTTokenCodec once (the signing key is derived here)
    - wires AuthenticateTokenUseCase + AuthorizeAccessUseCase
    - wires login, refresh, logout and unlock when the matching stores
      are given
    """
    codec: TokenCodec = token_codec or JWTTokenCodec.from_settings(settings)

    login_uc = None
    if accounts is not None and credentials is not None and sessions is not None and attempts is not None:
        login_uc = LoginUseCase(
            accounts=accounts,
            credentials=credentials,
            sessions=sessions,
            attempts=attempts,
            token_codec=codec,
            lockout=LockoutPolicy.from_settings(settings),
        )

    refresh_uc = RefreshTokenUseCase(accounts=accounts, token_codec=codec) if accounts is not None else None
    unlock_uc = UnlockAccountUseCase(accounts=accounts) if accounts is not None else None
    logout_uc = LogoutUseCase(sessions=sessions) if sessions is not None else None

    return AuthDependencies(
        auth_use_case=AuthenticateTokenUseCase(token_codec=codec),
        authorize_use_case=AuthorizeAccessUseCase(),
        login_use_case=login_uc,
        refresh_use_case=refresh_uc,
        logout_use_case=logout_uc,
        unlock_use_case=unlock_uc,
        cookie_name=settings.cookie_name,
    )
