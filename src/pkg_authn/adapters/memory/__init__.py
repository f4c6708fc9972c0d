from .stores import (
    InMemoryAccountStore,
    InMemoryLoginAttemptLog,
    InMemorySessionRegistry,
    StoredSession,
)

__all__ = [
    "InMemoryAccountStore",
    "InMemoryLoginAttemptLog",
    "InMemorySessionRegistry",
    "StoredSession",
]
