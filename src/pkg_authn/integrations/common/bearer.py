from __future__ import annotations

from typing import Any, Optional

from ...domain.constants import BEARER

_PREFIX = f"{BEARER} "


def bearer_from_header(authorization: Optional[str]) -> Optional[str]:
    """
    Token of an `Authorization: Bearer <token>` header value, or None.
    """
    if not authorization or not authorization.startswith(_PREFIX):
        return None
    return authorization[len(_PREFIX):].strip() or None


def token_from_request(request: Any, cookie_name: str) -> Optional[str]:
    """
    Bearer header first, then the `cookie_name` cookie.

    `request` is anything with Starlette-style `headers` and `cookies`
    mappings (FastAPI and Strawberry both hand over a Starlette Request).
    """
    return bearer_from_header(request.headers.get("Authorization")) or request.cookies.get(cookie_name) or None
