from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ...domain.entities import ClaimSet
from ...domain.exceptions import AuthorizationError
from ...domain.value_objects import AccessRequirement


@dataclass(slots=True)
class AuthorizeAccessUseCase:
    """
    Application use case for authorization using declarative AccessRequirement
    objects.

    Takes:
      - a ClaimSet (already authenticated)
      - an iterable of AccessRequirement objects

    and raises AuthorizationError if any requirement is not satisfied.
    """

    def _check_requirement(self, claims: ClaimSet, requirement: AccessRequirement) -> None:
        any_of = list(requirement.any_of)
        all_of = list(requirement.all_of)

        if requirement.tenant_id is not None and claims.tenant_id != requirement.tenant_id:
            raise AuthorizationError("Token does not belong to the required tenant")

        if any_of and not claims.has_any_role(*any_of):
            raise AuthorizationError(
                f"Missing at least one required role from: {any_of}"
            )

        if all_of and not claims.has_all_roles(*all_of):
            raise AuthorizationError(
                f"Missing required role(s): {all_of}"
            )

    def execute(
            self,
            claims: ClaimSet,
            requirements: Iterable[AccessRequirement],
    ) -> ClaimSet:
        """
        Raises:
            AuthorizationError if any of the requirements are not satisfied.

        Returns:
            The same ClaimSet if authorization succeeds (for chaining).
        """
        for requirement in requirements:
            self._check_requirement(claims, requirement)

        return claims
