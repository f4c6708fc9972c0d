# src/pkg_authn/cli.py

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from .adapters.jwt.token_codec import JWTTokenCodec
from .application.principal_builder import PrincipalBuilder
from .config.env import settings_from_env
from .domain.entities import AccountSnapshot, ClaimSet
from .domain.exceptions import InvalidTokenError, TokenExpiredError


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pkg-authn",
        description="Issue and inspect bearer tokens signed with AUTH_JWT_SECRET",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    issue = sub.add_parser("issue", help="Issue an access (or refresh) token")
    issue.add_argument("--account-id", type=int, required=True)
    issue.add_argument("--tenant-id", type=int, required=True)
    issue.add_argument("--email", required=True)
    issue.add_argument("--display-name", required=True)
    issue.add_argument("--employee-code")
    issue.add_argument(
        "--role",
        "-r",
        action="append",
        dest="roles",
        help="Role code to grant (repeatable), e.g. -r ADMIN -r CLERK",
    )
    issue.add_argument(
        "--refresh",
        action="store_true",
        help="Issue a refresh token instead of an access token.",
    )

    inspect = sub.add_parser("inspect", help="Verify a token and print its claims")
    inspect.add_argument("token")

    return parser.parse_args(args=argv)


def _claims_to_dict(claims: ClaimSet) -> dict[str, Any]:
    return {
        "subject": claims.subject,
        "account_id": claims.account_id,
        "tenant_id": claims.tenant_id,
        "employee_code": claims.employee_code,
        "display_name": claims.display_name,
        "roles": sorted(claims.roles) if claims.roles is not None else None,
        "token_type": claims.token_type.value,
        "issued_at": claims.issued_at.isoformat(),
        "expires_at": claims.expires_at.isoformat(),
    }


def _run(args: argparse.Namespace) -> dict[str, Any]:
    codec = JWTTokenCodec.from_settings(settings_from_env())

    if args.command == "issue":
        principal = PrincipalBuilder().build(
            AccountSnapshot(
                id=args.account_id,
                tenant_id=args.tenant_id,
                email=args.email,
                display_name=args.display_name,
                employee_code=args.employee_code,
                role_codes=tuple(args.roles or ()),
            )
        )
        if args.refresh:
            return {"token": codec.issue_refresh_token(principal), "expires_in": codec.refresh_ttl_seconds}
        return {"token": codec.issue_access_token(principal), "expires_in": codec.access_ttl_seconds}

    try:
        return {"claims": _claims_to_dict(codec.verify(args.token))}
    except (InvalidTokenError, TokenExpiredError) as exc:
        return {"ok": False, "reason": exc.reason, "error": str(exc)}


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        summary = {"ok": True, **_run(args)}
    except Exception as exc:  # noqa: BLE001
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        raise

    json.dump(summary, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0 if summary["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
