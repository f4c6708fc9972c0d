from __future__ import annotations

from datetime import datetime
from typing import Optional


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class AuthorizationError(Exception):
    """Raised when user lacks required permissions."""
    pass


# --- token errors ----------------------------------------------------------


class InvalidTokenError(AuthenticationError):
    """Raised when token is malformed or invalid."""

    reason = "invalid"


class TokenMalformedError(InvalidTokenError):
    """Token is not a structurally valid signed token."""

    reason = "malformed"


class TokenSignatureError(InvalidTokenError):
    """Token signature does not verify against the signing key."""

    reason = "bad_signature"


class TokenUnsupportedError(InvalidTokenError):
    """Token header names a signing algorithm we do not accept."""

    reason = "unsupported_algorithm"


class TokenClaimsEmptyError(InvalidTokenError):
    """Token string or its claim payload is empty."""

    reason = "empty_claims"


class TokenTypeMismatchError(InvalidTokenError):
    """A refresh token was presented where an access token is required, or the reverse."""

    reason = "wrong_token_type"


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""

    reason = "expired"


# --- login errors ------------------------------------------------------------


class AccountLockedError(AuthenticationError):
    """Login refused because the account is locked out."""

    def __init__(self, locked_until: Optional[datetime] = None) -> None:
        self.locked_until = locked_until
        if locked_until is not None:
            message = f"Account is locked until {locked_until.isoformat()}"
        else:
            message = "Account is locked"
        super().__init__(message)


class CredentialsInvalidError(AuthenticationError):
    """Raised when the presented credentials do not match."""
    pass


class AccountNotFoundError(AuthenticationError):
    """Raised when no account matches the lookup."""
    pass


class AccountDisabledError(AuthenticationError):
    """Raised when the account exists but is not ACTIVE."""
    pass


class LockoutUpdateError(AuthenticationError):
    """Persisting the lockout state failed; the attempt counts as failed."""
    pass
