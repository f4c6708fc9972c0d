from __future__ import annotations

from dataclasses import dataclass

from ...domain.entities import ClaimSet
from ...domain.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    TokenExpiredError,
    TokenTypeMismatchError,
)
from ...domain.ports import TokenCodec


@dataclass(slots=True)
class AuthenticateTokenUseCase:
    """
    Application use case:
    - Verify a bearer token via the TokenCodec port
    - Accept it only if it is an access token

    Framework-agnostic.
    """

    token_codec: TokenCodec

    def execute(self, token: str) -> ClaimSet:
        """
        Authenticate an access token and return its ClaimSet.

        Raises:
            TokenExpiredError
            InvalidTokenError
            AuthenticationError
        """
        try:
            claims = self.token_codec.verify(token)
        except (TokenExpiredError, InvalidTokenError):
            # let callers distinguish these explicitly
            raise
        except Exception as exc:
            # Wrap unexpected errors in a generic AuthenticationError
            raise AuthenticationError(f"Token validation failed: {exc}") from exc

        if not claims.is_access:
            raise TokenTypeMismatchError("Refresh tokens cannot be used for authentication")
        return claims
