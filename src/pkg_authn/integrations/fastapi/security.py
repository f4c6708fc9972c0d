from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..common.bearer import token_from_request
from ...domain.constants import BEARER

# Expose this so apps can plug it into dependencies if they want OpenAPI security
bearer_scheme = HTTPBearer(auto_error=False)

DEFAULT_COOKIE_NAME = "access_token"


def extract_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> str:
    """
    Find the bearer token of a request, in order:

      1. HTTPBearer credentials resolved by FastAPI
      2. the raw Authorization header
      3. the auth cookie

    Raises HTTPException(401) if no token is found.
    """
    if credentials is not None and (credentials.credentials or "").strip():
        return credentials.credentials.strip()

    token = token_from_request(request, cookie_name)
    if token:
        return token

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": BEARER},
    )
