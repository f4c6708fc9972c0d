"""
Strawberry GraphQL integration: context getter and permission classes.
"""

from .auth import (
    IsAuthenticated,
    StrawberryAuth,
    StrawberryAuthContext,
    create_strawberry_auth,
)

__all__ = [
    "IsAuthenticated",
    "StrawberryAuth",
    "StrawberryAuthContext",
    "create_strawberry_auth",
]
