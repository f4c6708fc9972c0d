from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..principal_builder import PrincipalBuilder
from ...domain.constants import BEARER
from ...domain.entities import LoginResult, PrincipalSummary
from ...domain.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    AccountNotFoundError,
    TokenTypeMismatchError,
)
from ...domain.ports import AccountStore, TokenCodec
from ...domain.value_objects import utcnow

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RefreshTokenUseCase:
    """
    Application use case: trade a refresh token for a new access token.

    The principal is rebuilt from the stored account, so role changes and
    status changes made since login take effect here. The refresh token
    itself is handed back unchanged.
    """

    accounts: AccountStore
    token_codec: TokenCodec
    principal_builder: PrincipalBuilder = field(default_factory=PrincipalBuilder)
    clock: Callable[[], datetime] = utcnow

    def execute(self, refresh_token: str) -> LoginResult:
        """
        Raises:
            TokenExpiredError
            InvalidTokenError (incl. TokenTypeMismatchError)
            AccountNotFoundError
            AccountDisabledError
            AccountLockedError
        """
        now = self.clock()
        claims = self.token_codec.verify(refresh_token, now)
        if not claims.is_refresh:
            raise TokenTypeMismatchError("Not a refresh token")

        account = self.accounts.find_by_id(claims.account_id)
        if account is None or account.tenant_id != claims.tenant_id:
            raise AccountNotFoundError("Account not found")

        principal = self.principal_builder.build(account)
        if not principal.is_account_enabled():
            raise AccountDisabledError("Account is disabled")
        if not principal.is_account_non_locked(now):
            raise AccountLockedError(principal.account_locked_until)

        access_token = self.token_codec.issue_access_token(principal, now)
        logger.debug("Issued refreshed access token for account %s", principal.account_id)

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=BEARER,
            expires_in=self.token_codec.access_ttl_seconds,
            user_info=PrincipalSummary.from_principal(principal),
            must_change_password=principal.must_change_password,
            password_expires_at=principal.password_expires_at,
        )
