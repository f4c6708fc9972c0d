from __future__ import annotations

import logging
from dataclasses import dataclass

from ...domain.entities import LockoutState
from ...domain.exceptions import AccountNotFoundError
from ...domain.ports import AccountStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UnlockAccountUseCase:
    """
    Operator action: clear the failed-attempt counter and any lock.

    This is an administrative override, not a LockoutPolicy transition; the
    policy itself never lifts a lock before it elapses.
    """

    accounts: AccountStore

    def execute(self, account_id: int) -> LockoutState:
        if self.accounts.find_by_id(account_id) is None:
            raise AccountNotFoundError(f"Unknown account {account_id}")
        state = self.accounts.update_lockout_state(account_id, lambda current: LockoutState())
        logger.info("Account %s unlocked by operator", account_id)
        return state
