from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

# Minimum key length in bytes per HMAC algorithm, strongest first.
_HMAC_MIN_KEY_BYTES: Tuple[Tuple[str, int], ...] = (
    ("HS512", 64),
    ("HS384", 48),
    ("HS256", 32),
)


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    HMAC key material derived once from the configured secret.

    The signing algorithm is the strongest HMAC variant the key is long
    enough for, the same rule standard JWT libraries apply to raw HMAC keys.
    Build it once at startup and inject it into the codec; it is never
    mutated afterwards.
    """
    secret: bytes = field(repr=False)
    algorithm: str
    accepted_algorithms: Tuple[str, ...]

    @classmethod
    def from_secret(cls, secret: Union[str, bytes]) -> "SigningKey":
        raw = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        accepted = tuple(alg for alg, min_len in _HMAC_MIN_KEY_BYTES if len(raw) >= min_len)
        if not accepted:
            raise ValueError(
                f"Signing secret is {len(raw) * 8} bits; "
                f"HMAC-SHA signing requires at least 256 bits"
            )
        return cls(secret=raw, algorithm=accepted[0], accepted_algorithms=accepted)
