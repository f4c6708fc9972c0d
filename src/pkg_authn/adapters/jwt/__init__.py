from .signing_key import SigningKey
from .token_codec import JWTTokenCodec, default_token_codec

__all__ = ["SigningKey", "JWTTokenCodec", "default_token_codec"]
