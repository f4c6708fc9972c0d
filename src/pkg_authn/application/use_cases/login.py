from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..principal_builder import PrincipalBuilder
from ...domain.constants import (
    BEARER,
    SUSPICIOUS_IP_THRESHOLD,
    SUSPICIOUS_IP_WINDOW_SECONDS,
    AccountStatus,
    FailureReason,
)
from ...domain.entities import (
    AccountSnapshot,
    LockoutState,
    LoginAttempt,
    LoginRequest,
    LoginResult,
    PrincipalSummary,
    SessionMetadata,
)
from ...domain.exceptions import (
    AccountDisabledError,
    AccountLockedError,
    AccountNotFoundError,
    CredentialsInvalidError,
    LockoutUpdateError,
)
from ...domain.lockout import LockoutPolicy
from ...domain.ports import (
    AccountStore,
    CredentialVerifier,
    LoginAttemptRecorder,
    SessionRegistry,
    TokenCodec,
)
from ...domain.value_objects import EmailAddress, utcnow

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoginUseCase:
    """
    Application use case: one password login attempt.

    Sequence:
      1. load the account
      2. refuse a locked account without checking the password, and flag
         IPs with many recent failures
      3. verify the password (external verifier)
      4. on mismatch, record the failure in the lockout state and fail
      5. on success, reset the lockout state (unless a concurrent failure
         locked the account meanwhile), build the principal, issue access +
         refresh tokens and open a session

    Holds no mutable state. Lockout transitions are computed by the
    LockoutPolicy and applied atomically by the AccountStore.
    """

    accounts: AccountStore
    credentials: CredentialVerifier
    sessions: SessionRegistry
    attempts: LoginAttemptRecorder
    token_codec: TokenCodec
    lockout: LockoutPolicy
    principal_builder: PrincipalBuilder = field(default_factory=PrincipalBuilder)
    clock: Callable[[], datetime] = utcnow
    suspicious_ip_threshold: int = SUSPICIOUS_IP_THRESHOLD
    suspicious_ip_window: timedelta = timedelta(seconds=SUSPICIOUS_IP_WINDOW_SECONDS)

    def execute(self, request: LoginRequest) -> LoginResult:
        """
        Raises:
            AccountNotFoundError
            AccountLockedError
            CredentialsInvalidError
            AccountDisabledError
            LockoutUpdateError
        """
        now = self.clock()
        try:
            email = str(EmailAddress(request.email))
        except ValueError:
            email = request.email.strip().lower()
            account = None
        else:
            account = self.accounts.find_by_email(email, request.tenant_id)

        if account is None:
            self._record(request, email, now, FailureReason.INVALID_CREDENTIALS)
            logger.warning("Failed login for unknown email %s from %s", email, request.ip_address)
            raise AccountNotFoundError("Invalid credentials")

        state = account.lockout_state
        if self.lockout.is_locked(state, now):
            self._record(request, email, now, FailureReason.ACCOUNT_LOCKED)
            logger.warning("Login refused for locked account %s (until %s)", account.id, state.locked_until)
            raise AccountLockedError(state.locked_until)

        self._check_suspicious_activity(request, now)

        if not self.credentials.verify(request.password, account.password_hash):
            self._register_failure(account, now)
            self._record(request, email, now, FailureReason.INVALID_CREDENTIALS)
            logger.warning("Failed login for account %s from %s", account.id, request.ip_address)
            raise CredentialsInvalidError("Invalid credentials")

        if account.status is not AccountStatus.ACTIVE:
            self._record(request, email, now, FailureReason.ACCOUNT_DISABLED)
            raise AccountDisabledError("Account is disabled")

        try:
            new_state = self.accounts.update_lockout_state(
                account.id,
                lambda current: self._reset_unless_locked(current, now),
                last_login_at=now,
            )
        except AccountLockedError as exc:
            self._record(request, email, now, FailureReason.ACCOUNT_LOCKED)
            logger.warning(
                "Login refused for account %s, locked by a concurrent attempt until %s",
                account.id,
                exc.locked_until,
            )
            raise

        principal = self.principal_builder.build(
            account.with_lockout_state(new_state, last_login_at=now)
        )

        if principal.is_password_expired(now):
            logger.info("Account %s logged in with expired password", principal.account_id)

        access_token = self.token_codec.issue_access_token(principal, now)
        refresh_token = self.token_codec.issue_refresh_token(principal, now)

        session_id = self.sessions.create_session(
            principal.account_id,
            principal.tenant_id,
            SessionMetadata(
                issued_at=now,
                access_expires_at=now + timedelta(seconds=self.token_codec.access_ttl_seconds),
                refresh_expires_at=now + timedelta(seconds=self.token_codec.refresh_ttl_seconds),
                ip_address=request.ip_address,
                user_agent=request.user_agent,
            ),
        )

        self._record(request, email, now, None)
        logger.info("Account %s logged in from %s", principal.account_id, request.ip_address)

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=BEARER,
            expires_in=self.token_codec.access_ttl_seconds,
            session_id=session_id,
            user_info=PrincipalSummary.from_principal(principal),
            must_change_password=principal.must_change_password or principal.is_password_expired(now),
            password_expires_at=principal.password_expires_at,
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _reset_unless_locked(self, current: LockoutState, now: datetime) -> LockoutState:
        # Re-checked on the stored state, inside the atomic update.
        if self.lockout.is_locked(current, now):
            raise AccountLockedError(current.locked_until)
        return self.lockout.on_successful_attempt(current)

    def _check_suspicious_activity(self, request: LoginRequest, now: datetime) -> None:
        if not request.ip_address:
            return
        failures = self.attempts.count_failures(
            now - self.suspicious_ip_window,
            ip_address=request.ip_address,
        )
        if failures >= self.suspicious_ip_threshold:
            logger.warning(
                "Suspicious activity from IP %s: %s failed attempts in the last %s",
                request.ip_address,
                failures,
                self.suspicious_ip_window,
            )

    def _register_failure(self, account: AccountSnapshot, now: datetime) -> None:
        try:
            state = self.accounts.update_lockout_state(
                account.id,
                lambda current: self.lockout.on_failed_attempt(current, now),
            )
        except Exception as exc:
            logger.error("Could not record failed attempt for account %s: %s", account.id, exc)
            raise LockoutUpdateError("Failed to record login attempt") from exc

        if self.lockout.is_locked(state, now):
            logger.warning(
                "Account %s locked after %s failed attempts, until %s",
                account.id,
                state.failed_attempts,
                state.locked_until,
            )

    def _record(
            self,
            request: LoginRequest,
            email: str,
            now: datetime,
            failure: Optional[FailureReason],
    ) -> None:
        self.attempts.record(
            LoginAttempt(
                email=email,
                success=failure is None,
                attempted_at=now,
                ip_address=request.ip_address,
                user_agent=request.user_agent,
                failure_reason=failure,
            )
        )
