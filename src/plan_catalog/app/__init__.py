from .core.env import Env, get_env, is_prod, pick
from .core.logging import setup_logging
from .settings import AppSettings, get_app_settings

__all__ = [
    "Env",
    "get_env",
    "is_prod",
    "pick",
    "setup_logging",
    "AppSettings",
    "get_app_settings",
]
