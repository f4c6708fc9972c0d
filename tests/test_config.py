# tests/test_config.py
import json

import pytest

from pkg_authn import cli
from pkg_authn.config.env import settings_from_env

from conftest import SECRET


def test_settings_from_env_defaults(monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SECRET", SECRET)
    for key in ("AUTH_ACCESS_TOKEN_TTL", "AUTH_REFRESH_TOKEN_TTL", "AUTH_MAX_LOGIN_ATTEMPTS",
                "AUTH_LOCKOUT_DURATION", "AUTH_COOKIE_NAME"):
        monkeypatch.delenv(key, raising=False)

    settings = settings_from_env()
    assert settings.jwt_secret == SECRET
    assert settings.access_token_ttl_seconds == 3600
    assert settings.refresh_token_ttl_seconds == 604800
    assert settings.max_login_attempts == 5
    assert settings.lockout_duration_seconds == 1800
    assert settings.cookie_name == "access_token"
    assert SECRET not in repr(settings)


def test_settings_from_env_overrides(monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SECRET", SECRET)
    monkeypatch.setenv("AUTH_ACCESS_TOKEN_TTL", "600")
    monkeypatch.setenv("AUTH_MAX_LOGIN_ATTEMPTS", "3")

    settings = settings_from_env()
    assert settings.access_token_ttl_seconds == 600
    assert settings.max_login_attempts == 3


def test_missing_secret(monkeypatch):
    monkeypatch.delenv("AUTH_JWT_SECRET", raising=False)
    with pytest.raises(RuntimeError, match="AUTH_JWT_SECRET"):
        settings_from_env()


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SECRET", SECRET)
    monkeypatch.setenv("AUTH_LOCKOUT_DURATION", "soon")
    with pytest.raises(RuntimeError, match="AUTH_LOCKOUT_DURATION"):
        settings_from_env()


def test_cli_issue_and_inspect(monkeypatch, capsys):
    monkeypatch.setenv("AUTH_JWT_SECRET", SECRET)

    assert cli.main([
        "issue", "--account-id", "42", "--tenant-id", "7",
        "--email", "admin@demo.example", "--display-name", "Demo Admin", "-r", "ADMIN",
    ]) == 0
    issued = json.loads(capsys.readouterr().out)
    assert issued["ok"] and issued["expires_in"] == 3600

    assert cli.main(["inspect", issued["token"]]) == 0
    inspected = json.loads(capsys.readouterr().out)
    assert inspected["claims"]["roles"] == ["ADMIN"]
    assert inspected["claims"]["token_type"] == "access"


def test_cli_inspect_reports_reason(monkeypatch, capsys):
    monkeypatch.setenv("AUTH_JWT_SECRET", SECRET)

    assert cli.main(["inspect", "garbage"]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out == {"ok": False, "reason": "malformed", "error": out["error"]}
