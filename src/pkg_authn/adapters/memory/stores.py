from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from ...domain.entities import AccountSnapshot, LockoutState, LoginAttempt, SessionMetadata
from ...domain.ports import (
    AccountStore,
    LockoutTransition,
    LoginAttemptRecorder,
    SessionRegistry,
)


class InMemoryAccountStore(AccountStore):
    """
    Dict-backed AccountStore for tests and local wiring.

    One lock guards every read-modify-write of the lockout fields, which
    gives the serializable-per-account behaviour the login flow relies on.
    """

    def __init__(self, accounts: Optional[List[AccountSnapshot]] = None) -> None:
        self._accounts: Dict[int, AccountSnapshot] = {}
        self._lock = threading.Lock()
        for account in accounts or []:
            self.save(account)

    def save(self, account: AccountSnapshot) -> None:
        with self._lock:
            self._accounts[account.id] = account

    def find_by_id(self, account_id: int) -> Optional[AccountSnapshot]:
        with self._lock:
            return self._accounts.get(account_id)

    def find_by_email(self, email: str, tenant_id: Optional[int] = None) -> Optional[AccountSnapshot]:
        wanted = email.strip().lower()
        with self._lock:
            for account in self._accounts.values():
                if account.email.lower() != wanted:
                    continue
                if tenant_id is not None and account.tenant_id != tenant_id:
                    continue
                return account
        return None

    def update_lockout_state(
            self,
            account_id: int,
            transition: LockoutTransition,
            *,
            last_login_at: Optional[datetime] = None,
    ) -> LockoutState:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise KeyError(f"Unknown account {account_id}")
            state = transition(account.lockout_state)
            self._accounts[account_id] = account.with_lockout_state(state, last_login_at)
            return state


@dataclass(frozen=True, slots=True)
class StoredSession:
    session_id: str
    account_id: int
    tenant_id: int
    metadata: SessionMetadata
    active: bool = True


class InMemorySessionRegistry(SessionRegistry):
    def __init__(self) -> None:
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = threading.Lock()

    def create_session(self, account_id: int, tenant_id: int, metadata: SessionMetadata) -> str:
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = StoredSession(session_id, account_id, tenant_id, metadata)
        return session_id

    def invalidate_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or not session.active:
                return False
            self._sessions[session_id] = StoredSession(
                session.session_id, session.account_id, session.tenant_id, session.metadata, active=False
            )
            return True

    def get(self, session_id: str) -> Optional[StoredSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def active_sessions(self, account_id: int) -> List[StoredSession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.account_id == account_id and s.active]


class InMemoryLoginAttemptLog(LoginAttemptRecorder):
    def __init__(self) -> None:
        self.attempts: List[LoginAttempt] = []
        self._lock = threading.Lock()

    def record(self, attempt: LoginAttempt) -> None:
        with self._lock:
            self.attempts.append(attempt)

    def count_failures(
            self,
            since: datetime,
            *,
            email: Optional[str] = None,
            ip_address: Optional[str] = None,
    ) -> int:
        wanted = email.strip().lower() if email is not None else None
        return len(self._failures(since, wanted, ip_address))

    def recent_failures(self, email: str, since: datetime) -> List[LoginAttempt]:
        failures = self._failures(since, email.strip().lower(), None)
        return sorted(failures, key=lambda a: a.attempted_at, reverse=True)

    def _failures(
            self,
            since: datetime,
            email: Optional[str],
            ip_address: Optional[str],
    ) -> List[LoginAttempt]:
        with self._lock:
            return [
                a for a in self.attempts
                if not a.success
                and a.attempted_at >= since
                and (email is None or a.email == email)
                and (ip_address is None or a.ip_address == ip_address)
            ]
