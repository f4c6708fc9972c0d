"""
pkg_authn

Clean-architecture token and account-protection core: signed access/refresh
tokens, principal construction and login lockout. Framework integrations
(FastAPI, Strawberry) live under `pkg_authn.integrations`.
"""

__version__ = "0.1.0"

from .config.settings import AuthSettings
from .config.env import settings_from_env
from .domain.constants import AccountStatus, ClaimName, FailureReason, TokenType
from .domain.entities import (
    AccountSnapshot,
    ClaimSet,
    LockoutState,
    LoginAttempt,
    LoginRequest,
    LoginResult,
    Principal,
    PrincipalSummary,
    SessionMetadata,
)
from .domain.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    AccountNotFoundError,
    AuthenticationError,
    AuthorizationError,
    CredentialsInvalidError,
    InvalidTokenError,
    LockoutUpdateError,
    TokenClaimsEmptyError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
    TokenTypeMismatchError,
    TokenUnsupportedError,
)
from .domain.lockout import LockoutPolicy
from .domain.ports import (
    AccountStore,
    CredentialVerifier,
    LoginAttemptRecorder,
    SessionRegistry,
    TokenCodec,
)
from .domain.value_objects import (
    AccessRequirement,
    EmailAddress,
    require_roles,
    require_tenant,
)

from .application.principal_builder import PrincipalBuilder
from .application.use_cases.authenticate import AuthenticateTokenUseCase
from .application.use_cases.authorize import AuthorizeAccessUseCase
from .application.use_cases.login import LoginUseCase
from .application.use_cases.logout import LogoutUseCase
from .application.use_cases.refresh import RefreshTokenUseCase
from .application.use_cases.unlock import UnlockAccountUseCase

from .adapters.jwt.signing_key import SigningKey
from .adapters.jwt.token_codec import JWTTokenCodec, default_token_codec

__all__ = [
    "__version__",
    # config
    "AuthSettings",
    "settings_from_env",
    # domain core
    "AccountStatus",
    "ClaimName",
    "FailureReason",
    "TokenType",
    "AccountSnapshot",
    "ClaimSet",
    "LockoutState",
    "LoginAttempt",
    "LoginRequest",
    "LoginResult",
    "Principal",
    "PrincipalSummary",
    "SessionMetadata",
    "LockoutPolicy",
    "AccessRequirement",
    "EmailAddress",
    "require_roles",
    "require_tenant",
    # ports
    "AccountStore",
    "CredentialVerifier",
    "LoginAttemptRecorder",
    "SessionRegistry",
    "TokenCodec",
    # exceptions
    "AuthenticationError",
    "AuthorizationError",
    "InvalidTokenError",
    "TokenMalformedError",
    "TokenSignatureError",
    "TokenUnsupportedError",
    "TokenClaimsEmptyError",
    "TokenTypeMismatchError",
    "TokenExpiredError",
    "AccountLockedError",
    "CredentialsInvalidError",
    "AccountNotFoundError",
    "AccountDisabledError",
    "LockoutUpdateError",
    # use cases
    "PrincipalBuilder",
    "AuthenticateTokenUseCase",
    "AuthorizeAccessUseCase",
    "LoginUseCase",
    "LogoutUseCase",
    "RefreshTokenUseCase",
    "UnlockAccountUseCase",
    # adapters
    "SigningKey",
    "JWTTokenCodec",
    "default_token_codec",
]
