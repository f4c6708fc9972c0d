from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Type

from graphql import GraphQLError
from starlette.requests import Request
from strawberry.permission import BasePermission
from strawberry.types import Info

from ...config.settings import AuthSettings
from ...domain.entities import ClaimSet
from ...domain.exceptions import AuthenticationError, AuthorizationError, TokenExpiredError
from ...domain.value_objects import AccessRequirement
from ..common.auth_factory import AuthDependencies, create_auth_dependencies
from ..common.bearer import token_from_request

ExtraFactory = Callable[[Request, Optional[ClaimSet]], Any]


@dataclass(slots=True)
class StrawberryAuthContext:
    """
    GraphQL context carrying the verified claims of the caller.

    `claims` is None for anonymous requests. `extra` is free for the host
    app (unit of work, services, loaders).
    """
    request: Request
    claims: Optional[ClaimSet] = None
    extra: Any = None


class IsAuthenticated(BasePermission):
    """Field permission: the request carried a valid access token."""

    message = "Authentication required"

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        return getattr(info.context, "claims", None) is not None


@dataclass(slots=True)
class StrawberryAuth:
    """
    Strawberry GraphQL adapter over `AuthDependencies`.

        strawberry_auth = create_strawberry_auth(settings=settings_from_env())

        graphql_app = GraphQLRouter(
            schema,
            context_getter=strawberry_auth.make_context_getter(),
        )

        @strawberry.field(permission_classes=[strawberry_auth.require_roles(["ADMIN"])])
        def accounts(self, info: Info) -> list[Account]:
            ...
    """

    auth: AuthDependencies

    def make_context_getter(
        self,
        *,
        optional: bool = True,
        extra_factory: Optional[ExtraFactory] = None,
    ):
        """
        Async `context_getter` for GraphQLRouter.

        With `optional=True` a missing or rejected token yields an anonymous
        context; with `optional=False` it raises a GraphQLError instead.
        `extra_factory(request, claims)` fills `context.extra`.
        """

        def _build(request: Request, claims: Optional[ClaimSet]) -> StrawberryAuthContext:
            extra = extra_factory(request, claims) if extra_factory else None
            return StrawberryAuthContext(request=request, claims=claims, extra=extra)

        def _reject(request: Request, error: str) -> StrawberryAuthContext:
            if not optional:
                raise GraphQLError(error)
            return _build(request, None)

        async def _context_getter(request: Request) -> StrawberryAuthContext:
            token = token_from_request(request, self.auth.cookie_name)
            if token is None:
                return _reject(request, "Not authenticated")

            try:
                claims = self.auth.authenticate(token)
            except TokenExpiredError:
                return _reject(request, "Token expired")
            except AuthenticationError as exc:
                return _reject(request, str(exc))

            return _build(request, claims)

        return _context_getter

    def require_authenticated(self) -> Type[BasePermission]:
        return IsAuthenticated

    def require_roles(self, roles: Iterable[str]) -> Type[BasePermission]:
        """Permission class: caller holds at least one of `roles`."""
        return self._permission(self.auth.require_roles(any_of=tuple(roles)))

    def require_all_roles(self, roles: Iterable[str]) -> Type[BasePermission]:
        """Permission class: caller holds every role in `roles`."""
        return self._permission(self.auth.require_roles(all_of=tuple(roles)))

    def require_tenant(self, tenant_id: int) -> Type[BasePermission]:
        """Permission class: caller's token was issued for `tenant_id`."""
        return self._permission(self.auth.require_tenant(tenant_id))

    def _permission(self, requirement: AccessRequirement) -> Type[BasePermission]:
        auth = self.auth

        class _RequireAccess(BasePermission):
            message = "Forbidden"

            def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
                claims = getattr(info.context, "claims", None)
                if claims is None:
                    self.message = IsAuthenticated.message
                    return False
                try:
                    auth.authorize(claims, [requirement])
                except AuthorizationError as exc:
                    self.message = str(exc)
                    return False
                return True

        return _RequireAccess


def create_strawberry_auth(*, settings: AuthSettings, **stores) -> StrawberryAuth:
    """
    Build a StrawberryAuth from AuthSettings. Stores are passed through to
    `create_auth_dependencies` for services that also log users in.
    """
    return StrawberryAuth(auth=create_auth_dependencies(settings=settings, **stores))
