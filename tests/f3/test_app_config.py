"""Tests for application configuration loading (F3)."""

from pathlib import Path

import pytest

from learnplatform.config.app_config import (
    AppConfig,
    clear_config_cache,
    load_app_config,
)
from learnplatform.core.achievements import DEFAULT_ACHIEVEMENTS


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run each test from an empty directory with a cold cache."""
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


def _write_config(text: str) -> Path:
    path = Path("data/config/app_config_v1.yaml")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    """Tests for built-in defaults."""

    def test_missing_file_uses_defaults(self):
        config = load_app_config()
        assert isinstance(config, AppConfig)
        assert config.token.symbol == "LEARN"
        assert config.token.decimals == 18
        assert config.faucet.enabled is False
        assert config.data_dir == Path("data")
        assert [r.label for r in config.achievements] == [r.label for r in DEFAULT_ACHIEVEMENTS]

    def test_default_policy(self):
        policy = load_app_config().settlement_policy()
        assert policy.base_reward == 10 * 10**18
        assert policy.min_rating == 1
        assert policy.max_rating == 500
        assert policy.pass_score == 70


class TestFromFile:
    """Tests for YAML overrides."""

    def test_partial_override(self):
        _write_config("policy:\n  base_reward: '2.5'\n  pass_score: 60\n")
        config = load_app_config()
        policy = config.settlement_policy()
        assert policy.base_reward == 25 * 10**17
        assert policy.pass_score == 60
        assert policy.reputation_divisor == 100

    def test_token_decimals_scale_policy(self):
        _write_config("token:\n  decimals: 2\npolicy:\n  base_reward: '3'\n")
        assert load_app_config().settlement_policy().base_reward == 300

    def test_faucet_and_paths(self):
        _write_config("faucet:\n  enabled: true\n  max_amount: '50'\npaths:\n  data_dir: state_here\n")
        config = load_app_config()
        assert config.faucet.enabled is True
        assert config.faucet.max_amount == "50"
        assert config.data_dir == Path("state_here")

    def test_custom_achievements(self):
        _write_config(
            "achievements:\n"
            "  - {label: Patron, stat: tokens_spent, threshold: 5}\n"
        )
        rules = load_app_config().achievements
        assert [(r.label, r.stat, r.threshold) for r in rules] == [("Patron", "tokens_spent", 5)]

    def test_unknown_achievement_stat_fails(self):
        _write_config("achievements:\n  - {label: X, stat: nope, threshold: 1}\n")
        with pytest.raises(ValueError):
            load_app_config()

    def test_empty_file_uses_defaults(self):
        _write_config("")
        assert load_app_config().token.name == "LearnToken"

    def test_explicit_config_file(self, tmp_path):
        other = tmp_path / "other.yaml"
        other.write_text("token:\n  symbol: SKL\n", encoding="utf-8")
        assert load_app_config(config_file=other).token.symbol == "SKL"
        # explicit files are not cached
        assert load_app_config().token.symbol == "LEARN"


class TestCache:
    """Tests for the module-level cache."""

    def test_cached_until_cleared(self):
        first = load_app_config()
        _write_config("token:\n  symbol: NEW\n")
        assert load_app_config() is first
        clear_config_cache()
        assert load_app_config().token.symbol == "NEW"

    def test_force_reload(self):
        load_app_config()
        _write_config("token:\n  symbol: NEW\n")
        assert load_app_config(force_reload=True).token.symbol == "NEW"
