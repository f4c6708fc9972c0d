from __future__ import annotations

import os

from .settings import AuthSettings


def settings_from_env() -> AuthSettings:
    def _int(key: str, default: int) -> int:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise RuntimeError(f"{key} must be an integer, got {raw!r}") from exc

    secret = os.getenv("AUTH_JWT_SECRET")
    if not secret:
        raise RuntimeError("Missing auth settings: AUTH_JWT_SECRET")

    return AuthSettings(
        jwt_secret=secret,
        access_token_ttl_seconds=_int("AUTH_ACCESS_TOKEN_TTL", 3600),
        refresh_token_ttl_seconds=_int("AUTH_REFRESH_TOKEN_TTL", 7 * 24 * 3600),
        max_login_attempts=_int("AUTH_MAX_LOGIN_ATTEMPTS", 5),
        lockout_duration_seconds=_int("AUTH_LOCKOUT_DURATION", 30 * 60),
        cookie_name=os.getenv("AUTH_COOKIE_NAME") or "access_token",
    )
