"""Configuration package for the learning platform."""

from learnplatform.config.app_config import (
    AppConfig,
    FaucetConfig,
    PolicyConfig,
    TokenConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "FaucetConfig",
    "PolicyConfig",
    "TokenConfig",
    "clear_config_cache",
    "load_app_config",
]
