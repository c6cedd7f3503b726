"""Configuration backends.

Each backend is an independent class satisfying the ``Provider`` protocol.
"""

from app_config.providers.appconfig import AppConfigProvider
from app_config.providers.base import Provider
from app_config.providers.mock import MockProvider
from app_config.providers.param_store import ParamStoreProvider

__all__ = ["Provider", "AppConfigProvider", "ParamStoreProvider", "MockProvider"]
