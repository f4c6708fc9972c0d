# src/pkg_authn/domain/value_objects.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from .constants import AUTHORITY_PREFIX


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime], name: str) -> Optional[datetime]:
    """Naive datetimes are rejected; every timestamp here is UTC-aware."""
    if value is not None and value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware, got {value!r}")
    return value


# --- Identity value objects ----------------------------------------------


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """
    Simple email value object.

    Stored lower-cased; login lookups are case-insensitive.
    """
    value: str

    def __post_init__(self) -> None:
        if "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value!r}")
        object.__setattr__(self, "value", self.value.strip().lower())

    def __str__(self) -> str:
        return self.value


# --- Role <-> authority mapping ------------------------------------------
#
# The "ROLE_" prefix is a representation detail of authorities. These two
# functions are the only place that adds or strips it.


def role_to_authority(role_code: str) -> str:
    return AUTHORITY_PREFIX + role_code


def authority_to_role(authority: str) -> str:
    if not authority.startswith(AUTHORITY_PREFIX):
        raise ValueError(f"Not a role authority: {authority!r}")
    return authority[len(AUTHORITY_PREFIX):]


# --- Optional timestamp predicates ---------------------------------------


def lock_in_effect(locked_until: Optional[datetime], now: datetime) -> bool:
    """A lock holds only while `locked_until` is strictly in the future."""
    return locked_until is not None and locked_until > now


def credentials_expired(password_expires_at: Optional[datetime], now: datetime) -> bool:
    """Credentials are expired once `now` reaches `password_expires_at`."""
    return password_expires_at is not None and not password_expires_at > now


# --- Access requirements -------------------------------------------------


def _normalize(values: Iterable[str]) -> Tuple[str, ...]:
    """
    Normalize an iterable of strings into a tuple.
    If a plain string is passed, treat it as a single-element collection.
    """
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True, slots=True)
class AccessRequirement:
    """
    Declarative description of an authorization requirement.

    - any_of:    at least one of these role codes must be present (OR)
    - all_of:    all of these role codes must be present (AND)
    - tenant_id: the token must belong to this tenant

    Any combination may be used together.
    """

    any_of: Tuple[str, ...] = ()
    all_of: Tuple[str, ...] = ()
    tenant_id: Optional[int] = None

    def __init__(
            self,
            any_of: Iterable[str] | None = None,
            all_of: Iterable[str] | None = None,
            tenant_id: Optional[int] = None,
    ) -> None:
        object.__setattr__(self, "any_of", _normalize(any_of or ()))
        object.__setattr__(self, "all_of", _normalize(all_of or ()))
        object.__setattr__(self, "tenant_id", tenant_id)


def require_roles(*roles: str, any_of: bool = True) -> AccessRequirement:
    if any_of:
        return AccessRequirement(any_of=roles)
    return AccessRequirement(all_of=roles)


def require_tenant(tenant_id: int) -> AccessRequirement:
    return AccessRequirement(tenant_id=tenant_id)
