from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import jwt
from jwt.exceptions import (
    DecodeError,
    InvalidAlgorithmError,
    InvalidSignatureError,
    PyJWTError,
)

from ...config.env import settings_from_env
from ...config.settings import AuthSettings
from ...domain import constants as c
from ...domain.constants import ClaimName, TokenType
from ...domain.entities import ClaimSet, Principal
from ...domain.exceptions import (
    InvalidTokenError,
    TokenClaimsEmptyError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
    TokenUnsupportedError,
)
from ...domain.ports import TokenCodec
from ...domain.value_objects import authority_to_role, ensure_aware, utcnow
from .signing_key import SigningKey

logger = logging.getLogger(__name__)

_CLAIM_ATTRIBUTES = {
    ClaimName.SUBJECT: "subject",
    ClaimName.ACCOUNT_ID: "account_id",
    ClaimName.TENANT_ID: "tenant_id",
    ClaimName.EXPIRATION: "expires_at",
}

# Time claims are checked against the codec clock, not by PyJWT.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
}


class JWTTokenCodec(TokenCodec):
    """
    Adapter implementing the TokenCodec port with PyJWT and a shared HMAC key.

    Access and refresh tokens use the same key and differ in claim shape:
    refresh tokens carry `tokenType="refresh"` and no role or display-name
    claims, so they cannot stand in for an access token.
    """

    def __init__(
        self,
        signing_key: SigningKey,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if access_ttl_seconds <= 0 or refresh_ttl_seconds <= 0:
            raise ValueError("Token TTLs must be positive")
        self._key = signing_key
        self._clock = clock
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_seconds = refresh_ttl_seconds

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> "JWTTokenCodec":
        return cls(
            signing_key=SigningKey.from_secret(settings.jwt_secret_bytes),
            access_ttl_seconds=settings.access_token_ttl_seconds,
            refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
            clock=clock,
        )

    # ------------------------------------------------------------------ #
    # Issuing
    # ------------------------------------------------------------------ #

    def issue_access_token(self, principal: Principal, now: Optional[datetime] = None) -> str:
        issued_at = self._epoch(now)
        payload: Dict[str, Any] = {
            c.CLAIM_SUBJECT: principal.email,
            c.CLAIM_ACCOUNT_ID: principal.account_id,
            c.CLAIM_TENANT_ID: principal.tenant_id,
            c.CLAIM_EMPLOYEE_CODE: principal.employee_code,
            c.CLAIM_DISPLAY_NAME: principal.display_name,
            c.CLAIM_ROLES: sorted(principal.authorities),
            c.CLAIM_ISSUED_AT: issued_at,
            c.CLAIM_EXPIRES_AT: issued_at + self.access_ttl_seconds,
        }
        return self._encode(payload)

    def issue_refresh_token(self, principal: Principal, now: Optional[datetime] = None) -> str:
        issued_at = self._epoch(now)
        payload: Dict[str, Any] = {
            c.CLAIM_SUBJECT: principal.email,
            c.CLAIM_ACCOUNT_ID: principal.account_id,
            c.CLAIM_TENANT_ID: principal.tenant_id,
            c.CLAIM_TOKEN_TYPE: TokenType.REFRESH.value,
            c.CLAIM_ISSUED_AT: issued_at,
            c.CLAIM_EXPIRES_AT: issued_at + self.refresh_ttl_seconds,
        }
        return self._encode(payload)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify(self, token: str, now: Optional[datetime] = None) -> ClaimSet:
        """
        Verify signature, structure and expiry of a token.

        Returns:
            ClaimSet projected from the verified claims.

        Raises:
            TokenClaimsEmptyError
            TokenMalformedError
            TokenSignatureError
            TokenUnsupportedError
            TokenExpiredError
            ValueError: `now` is a naive datetime
        """
        if token is None or not str(token).strip():
            raise TokenClaimsEmptyError("JWT claims string is empty")

        try:
            payload = jwt.decode(
                token,
                self._key.secret,
                algorithms=list(self._key.accepted_algorithms),
                options=_DECODE_OPTIONS,
            )
        except InvalidAlgorithmError as exc:
            raise TokenUnsupportedError(f"Unsupported JWT token: {exc}") from exc
        except InvalidSignatureError as exc:
            raise TokenSignatureError("Invalid JWT signature") from exc
        except DecodeError as exc:
            raise TokenMalformedError(f"Invalid JWT token: {exc}") from exc
        except PyJWTError as exc:
            raise TokenMalformedError(f"Invalid JWT token: {exc}") from exc

        if not payload:
            raise TokenClaimsEmptyError("JWT claims string is empty")

        claims = _project_claims(payload)

        if (ensure_aware(now, "now") or self._clock()) >= claims.expires_at:
            raise TokenExpiredError(f"Token expired at {claims.expires_at.isoformat()}")
        return claims

    def extract_claim(self, token: str, name: ClaimName) -> Any:
        return getattr(self.verify(token), _CLAIM_ATTRIBUTES[name])

    def get_subject(self, token: str) -> str:
        return self.extract_claim(token, ClaimName.SUBJECT)

    def get_account_id(self, token: str) -> int:
        return self.extract_claim(token, ClaimName.ACCOUNT_ID)

    def get_tenant_id(self, token: str) -> int:
        return self.extract_claim(token, ClaimName.TENANT_ID)

    def get_expiration(self, token: str) -> datetime:
        return self.extract_claim(token, ClaimName.EXPIRATION)

    # ------------------------------------------------------------------ #
    # Boolean probes
    # ------------------------------------------------------------------ #

    def is_token_valid(self, token: str) -> bool:
        try:
            self.verify(token)
            return True
        except (InvalidTokenError, TokenExpiredError) as exc:
            logger.warning("Token rejected (%s): %s", exc.reason, exc)
            return False

    def is_token_expired(self, token: str) -> bool:
        try:
            self.verify(token)
            return False
        except (InvalidTokenError, TokenExpiredError):
            return True

    def is_refresh_token(self, token: str) -> bool:
        try:
            return self.verify(token).is_refresh
        except (InvalidTokenError, TokenExpiredError):
            return False

    def is_access_token(self, token: str) -> bool:
        try:
            return self.verify(token).is_access
        except (InvalidTokenError, TokenExpiredError):
            return False

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _epoch(self, now: Optional[datetime]) -> int:
        return int((ensure_aware(now, "now") or self._clock()).timestamp())

    def _encode(self, payload: Dict[str, Any]) -> str:
        # A null claim is the same as no claim.
        payload = {k: v for k, v in payload.items() if v is not None}
        return jwt.encode(payload, self._key.secret, algorithm=self._key.algorithm)


# --------------------------------------------------------------------- #
# Claim projection
# --------------------------------------------------------------------- #


def _require(payload: Mapping[str, Any], name: str, kind: Any) -> Any:
    value = payload.get(name)
    if value is None:
        raise TokenMalformedError(f"Invalid JWT token: missing '{name}' claim")
    if isinstance(value, bool) or not isinstance(value, kind):
        raise TokenMalformedError(f"Invalid JWT token: bad '{name}' claim")
    return value


def _optional_str(payload: Mapping[str, Any], name: str) -> Optional[str]:
    value = payload.get(name)
    if value is not None and not isinstance(value, str):
        raise TokenMalformedError(f"Invalid JWT token: bad '{name}' claim")
    return value


def _timestamp(payload: Mapping[str, Any], name: str) -> datetime:
    value = _require(payload, name, (int, float))
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _token_type(raw: Any) -> TokenType:
    if raw is None:
        return TokenType.ACCESS
    try:
        return TokenType(raw)
    except ValueError:
        raise TokenMalformedError(f"Invalid JWT token: unknown token type {raw!r}") from None


def _project_claims(payload: Mapping[str, Any]) -> ClaimSet:
    subject = _require(payload, c.CLAIM_SUBJECT, str)
    if not subject:
        raise TokenMalformedError("Invalid JWT token: empty subject")

    roles_raw = payload.get(c.CLAIM_ROLES)
    roles = None
    if roles_raw is not None:
        if not isinstance(roles_raw, list) or not all(isinstance(r, str) for r in roles_raw):
            raise TokenMalformedError("Invalid JWT token: bad 'roles' claim")
        try:
            roles = frozenset(authority_to_role(r) for r in roles_raw)
        except ValueError as exc:
            raise TokenMalformedError(f"Invalid JWT token: {exc}") from exc

    return ClaimSet(
        subject=subject,
        account_id=_require(payload, c.CLAIM_ACCOUNT_ID, int),
        tenant_id=_require(payload, c.CLAIM_TENANT_ID, int),
        issued_at=_timestamp(payload, c.CLAIM_ISSUED_AT),
        expires_at=_timestamp(payload, c.CLAIM_EXPIRES_AT),
        token_type=_token_type(payload.get(c.CLAIM_TOKEN_TYPE)),
        employee_code=_optional_str(payload, c.CLAIM_EMPLOYEE_CODE),
        display_name=_optional_str(payload, c.CLAIM_DISPLAY_NAME),
        roles=roles,
    )


# --------------------------------------------------------------------- #
# Process-wide default codec
# --------------------------------------------------------------------- #

_default_codec: Optional[JWTTokenCodec] = None
_default_lock = threading.Lock()


def default_token_codec() -> JWTTokenCodec:
    """
    Codec built from environment settings on first use.

    Initialization runs at most once per process, even when first used
    from several threads at the same time.
    """
    global _default_codec
    if _default_codec is not None:
        return _default_codec

    with _default_lock:
        if _default_codec is None:
            _default_codec = JWTTokenCodec.from_settings(settings_from_env())
            logger.debug("Initialized default token codec (%s)", _default_codec._key.algorithm)
        return _default_codec
