"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults for anything missing.

Usage:
    from learnplatform.config.app_config import load_app_config

    config = load_app_config()
    policy = config.settlement_policy()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from learnplatform.core.achievements import DEFAULT_ACHIEVEMENTS, AchievementRule
from learnplatform.core.session_engine import SettlementPolicy
from learnplatform.utils.token_units import parse_token_amount

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class TokenConfig:
    """Display settings for the platform token."""

    name: str = "LearnToken"
    symbol: str = "LEARN"
    decimals: int = 18


@dataclass
class PolicyConfig:
    """Settlement constants, in whole tokens where amounts are involved."""

    base_reward: str = "10"
    reputation_divisor: int = 100
    min_rating: int = 1
    max_rating: int = 500
    pass_score: int = 70


@dataclass
class FaucetConfig:
    """Issuer-funded faucet for development networks."""

    enabled: bool = False
    max_amount: str = "1000"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    token: TokenConfig = field(default_factory=TokenConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    faucet: FaucetConfig = field(default_factory=FaucetConfig)
    achievements: list[AchievementRule] = field(
        default_factory=lambda: list(DEFAULT_ACHIEVEMENTS)
    )
    paths: dict[str, str] = field(default_factory=dict)

    def settlement_policy(self) -> SettlementPolicy:
        """Build the engine policy, converting token amounts to smallest units."""
        return SettlementPolicy(
            base_reward=parse_token_amount(self.policy.base_reward, self.token.decimals),
            reputation_divisor=self.policy.reputation_divisor,
            min_rating=self.policy.min_rating,
            max_rating=self.policy.max_rating,
            pass_score=self.policy.pass_score,
        )

    @property
    def data_dir(self) -> Path:
        return Path(self.paths.get("data_dir", "data"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "token": {"name": "LearnToken", "symbol": "LEARN", "decimals": 18},
        "policy": {
            "base_reward": "10",
            "reputation_divisor": 100,
            "min_rating": 1,
            "max_rating": 500,
            "pass_score": 70,
        },
        "faucet": {"enabled": False, "max_amount": "1000"},
        "achievements": [
            {"label": r.label, "stat": r.stat, "threshold": r.threshold}
            for r in DEFAULT_ACHIEVEMENTS
        ],
        "paths": {"data_dir": "data"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    token_data = {**defaults["token"], **(data.get("token") or {})}
    token = TokenConfig(
        name=token_data["name"],
        symbol=token_data["symbol"],
        decimals=int(token_data["decimals"]),
    )

    policy_data = {**defaults["policy"], **(data.get("policy") or {})}
    policy = PolicyConfig(
        base_reward=str(policy_data["base_reward"]),
        reputation_divisor=int(policy_data["reputation_divisor"]),
        min_rating=int(policy_data["min_rating"]),
        max_rating=int(policy_data["max_rating"]),
        pass_score=int(policy_data["pass_score"]),
    )

    faucet_data = {**defaults["faucet"], **(data.get("faucet") or {})}
    faucet = FaucetConfig(
        enabled=bool(faucet_data["enabled"]),
        max_amount=str(faucet_data["max_amount"]),
    )

    achievements = [
        AchievementRule(
            label=a["label"],
            stat=a["stat"],
            threshold=int(a["threshold"]),
        )
        for a in data.get("achievements") or defaults["achievements"]
    ]

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(
        token=token,
        policy=policy,
        faucet=faucet,
        achievements=achievements,
        paths=paths,
    )


def load_app_config(force_reload: bool = False, config_file: Path | None = None) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternative config path (defaults to CONFIG_FILE)

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_file is None:
        return _cached_config

    path = config_file or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    config = _parse_config(data)
    if config_file is None:
        _cached_config = config
    return config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
