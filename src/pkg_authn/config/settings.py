from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class AuthSettings:
    """
    Token signing + lockout settings.

    Host code decides how to construct this (env, config file, etc.).
    """
    jwt_secret: str = field(repr=False)
    access_token_ttl_seconds: int = 3600
    refresh_token_ttl_seconds: int = 7 * 24 * 3600

    max_login_attempts: int = 5
    lockout_duration_seconds: int = 30 * 60

    cookie_name: str = "access_token"

    @property
    def jwt_secret_bytes(self) -> bytes:
        return self.jwt_secret.encode("utf-8")
