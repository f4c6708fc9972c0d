from .env import settings_from_env
from .settings import AuthSettings

__all__ = ["AuthSettings", "settings_from_env"]
