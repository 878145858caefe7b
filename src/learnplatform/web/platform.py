"""Platform instance shared by the Web API.

Holds one LearnPlatform per process, loaded from the state file on first use
and saved back after every mutating request.
"""

from __future__ import annotations

import structlog

from learnplatform.config.app_config import AppConfig, load_app_config
from learnplatform.core.platform import LearnPlatform
from learnplatform.core.state_store import load_platform_state, save_platform_state
from learnplatform.web.events import EventBroadcaster

logger = structlog.get_logger(__name__)

# Global instances
_platform: LearnPlatform | None = None
_broadcaster: EventBroadcaster | None = None


def get_config() -> AppConfig:
    """Get the application config."""
    return load_app_config()


def get_broadcaster() -> EventBroadcaster:
    """Get the global event broadcaster instance."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = EventBroadcaster()
    return _broadcaster


def get_platform() -> LearnPlatform:
    """Get the global platform instance, loading persisted state once."""
    global _platform
    if _platform is None:
        config = get_config()
        _platform = load_platform_state(
            config.data_dir,
            policy=config.settlement_policy(),
            achievements=config.achievements,
        )
        get_broadcaster().attach(_platform)
        logger.info(
            "platform_loaded",
            data_dir=str(config.data_dir),
            users=len(_platform.registry.users),
            skills=_platform.total_skills(),
        )
    return _platform


def save_platform() -> None:
    """Persist the global platform to the configured data directory."""
    if _platform is not None:
        save_platform_state(_platform, get_config().data_dir)


def reset_platform() -> None:
    """Reset the platform and broadcaster (for testing)."""
    global _platform, _broadcaster
    if _broadcaster is not None:
        _broadcaster.detach()
    _platform = None
    _broadcaster = None
