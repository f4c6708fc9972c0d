from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials

from .security import bearer_scheme, extract_token_from_request
from ..common.auth_factory import AuthDependencies
from ...domain.constants import BEARER
from ...domain.entities import ClaimSet
from ...domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
)
from ...domain.value_objects import AccessRequirement


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": BEARER},
    )


@dataclass(slots=True)
class FastAPIAuthorization:
    """
    FastAPI integration for pkg_authn, built on top of the
    framework-agnostic AuthDependencies facade.

    Usage:

        fastapi_auth = create_fastapi_auth(settings=settings)

        @router.get("/items")
        def list_items(claims: ClaimSet = Depends(fastapi_auth.require_roles("CLERK", "ADMIN"))):
            ...
    """

    auth: AuthDependencies

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    async def get_current_claims(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> ClaimSet:
        """Dependency: Require authentication with an access token."""
        token = extract_token_from_request(request, credentials, self.auth.cookie_name)
        try:
            return self.auth.authenticate(token)
        except TokenExpiredError as exc:
            raise _unauthorized("Token expired") from exc
        except AuthenticationError as exc:
            raise _unauthorized(str(exc)) from exc

    async def get_optional_claims(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> ClaimSet | None:
        """Dependency: Optional authentication."""
        try:
            token = extract_token_from_request(request, credentials, self.auth.cookie_name)
        except HTTPException:
            # no token anywhere -> anonymous
            return None

        try:
            return self.auth.authenticate(token)
        except AuthenticationError:
            # bad token -> treat as anonymous
            return None

    # ------------------------------------------------------------------ #
    # Authorization dependency factories
    # ------------------------------------------------------------------ #

    def _requiring(self, requirement: AccessRequirement) -> Callable:
        async def dependency(
                claims: ClaimSet = Depends(self.get_current_claims),
        ) -> ClaimSet:
            try:
                return self.auth.authorize(claims, [requirement])
            except AuthorizationError as exc:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                    detail=str(exc)) from exc

        return dependency

    def require_roles(self, *roles: str) -> Callable:
        """
        Dependency factory: require any of the given role codes.
        """
        return self._requiring(self.auth.require_roles(any_of=roles))

    def require_all_roles(self, *roles: str) -> Callable:
        """
        Dependency factory: require every one of the given role codes.
        """
        return self._requiring(self.auth.require_roles(all_of=roles))

    def require_tenant(self, tenant_id: int) -> Callable:
        """
        Dependency factory: require a token issued for the given tenant.
        """
        return self._requiring(self.auth.require_tenant(tenant_id))
