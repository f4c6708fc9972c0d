from __future__ import annotations

from dataclasses import dataclass

from ..domain.entities import AccountSnapshot, Principal
from ..domain.value_objects import role_to_authority


@dataclass(frozen=True, slots=True)
class PrincipalBuilder:
    """
    Maps an account snapshot (fields + role codes) to a Principal.

    Pure: no I/O, the snapshot is not touched, and building the same
    snapshot twice gives equal principals. Eligibility flags are not
    computed here; the Principal evaluates them per call.
    """

    def build(self, account: AccountSnapshot) -> Principal:
        if account.id is None:
            raise ValueError("Account id is required")
        if account.tenant_id is None:
            raise ValueError("Tenant id is required")
        if not account.email or not account.email.strip():
            raise ValueError("Email is required")
        if not account.display_name or not account.display_name.strip():
            raise ValueError("Display name is required")

        return Principal(
            account_id=account.id,
            tenant_id=account.tenant_id,
            email=account.email,
            display_name=account.display_name,
            employee_code=account.employee_code,
            password_hash=account.password_hash,
            status=account.status,
            must_change_password=account.must_change_password,
            password_expires_at=account.password_expires_at,
            failed_login_attempts=account.failed_login_attempts,
            account_locked_until=account.account_locked_until,
            last_login_at=account.last_login_at,
            authorities=frozenset(role_to_authority(code) for code in account.role_codes),
        )
