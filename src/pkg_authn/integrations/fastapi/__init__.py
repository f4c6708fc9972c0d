from __future__ import annotations

from .deps import FastAPIAuthorization
from .security import bearer_scheme, extract_token_from_request
from ..common.auth_factory import create_auth_dependencies, AuthDependencies
from ...config.settings import AuthSettings


def create_fastapi_auth(*, settings: AuthSettings, **stores) -> FastAPIAuthorization:
    """
    High-level helper for FastAPI apps:

    - Creates AuthDependencies from AuthSettings (and, optionally, the
      account/session/attempt stores for login and refresh)
    - Wraps them in FastAPIAuthorization, exposing dependencies like:

        fastapi_auth.get_current_claims
        fastapi_auth.get_optional_claims
        fastapi_auth.require_roles(...)
        fastapi_auth.require_tenant(...)
    """
    auth: AuthDependencies = create_auth_dependencies(settings=settings, **stores)
    return FastAPIAuthorization(auth=auth)


__all__ = [
    "FastAPIAuthorization",
    "bearer_scheme",
    "create_fastapi_auth",
    "extract_token_from_request",
]
