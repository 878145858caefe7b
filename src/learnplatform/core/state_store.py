"""Platform state persistence.

Saves and restores the whole platform (ledger, users, skills, sessions and
id counters) as a single JSON document:

    data/state/platform_v1.json

A missing file yields a fresh platform. A file that cannot be parsed raises
StateFileError instead of silently starting over, since it holds balances.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from learnplatform.core.achievements import DEFAULT_ACHIEVEMENTS, AchievementRule
from learnplatform.core.errors import StateFileError
from learnplatform.core.platform import LearnPlatform
from learnplatform.core.registry import Clock, Skill, User
from learnplatform.core.session_engine import Session, SettlementPolicy

logger = structlog.get_logger(__name__)

STATE_SCHEMA = "platform_v1"
STATE_FILENAME = "platform_v1.json"


def get_state_path(data_dir: Path | None = None) -> Path:
    """Path of the state file inside a data directory."""
    if data_dir is None:
        data_dir = Path("data")
    return data_dir / "state" / STATE_FILENAME


def platform_to_dict(platform: LearnPlatform) -> dict[str, Any]:
    """Serialize platform state to a JSON-compatible dictionary."""
    with platform._lock:
        return {
            "$schema": STATE_SCHEMA,
            "ledger": {
                "issuer": platform.ledger.issuer,
                "total_supply": platform.ledger.total_supply,
                "balances": platform.ledger.accounts(),
            },
            "next_skill_id": platform.registry.next_skill_id,
            "next_session_id": platform.engine.next_session_id,
            "users": [u.to_dict() for u in platform.registry.list_users()],
            "skills": [s.to_dict() for s in platform.registry.list_skills()],
            "sessions": [
                s.to_dict()
                for s in sorted(platform.engine.sessions.values(), key=lambda s: s.id)
            ],
        }


def platform_from_dict(
    data: dict[str, Any],
    policy: SettlementPolicy | None = None,
    achievements: tuple[AchievementRule, ...] | list[AchievementRule] = DEFAULT_ACHIEVEMENTS,
    clock: Clock | None = None,
) -> LearnPlatform:
    """Rebuild a platform from a dictionary produced by platform_to_dict.

    Raises:
        StateFileError: If the schema tag is wrong or a record is malformed
    """
    if data.get("$schema") != STATE_SCHEMA:
        raise StateFileError(
            f"Invalid state schema: expected {STATE_SCHEMA}, got {data.get('$schema')}"
        )

    try:
        ledger_data = data.get("ledger", {})
        platform = LearnPlatform(
            policy=policy,
            achievements=achievements,
            clock=clock,
            issuer=ledger_data.get("issuer", "@platform"),
        )
        platform.ledger.balances = {
            str(k): int(v) for k, v in ledger_data.get("balances", {}).items()
        }
        platform.ledger.total_supply = int(ledger_data.get("total_supply", 0))

        for u_data in data.get("users", []):
            user = User.from_dict(u_data)
            platform.registry.users[user.address] = user
        for s_data in data.get("skills", []):
            skill = Skill.from_dict(s_data)
            platform.registry.skills[skill.id] = skill
        for sess_data in data.get("sessions", []):
            session = Session.from_dict(sess_data)
            platform.engine.sessions[session.id] = session

        platform.registry.next_skill_id = data.get(
            "next_skill_id", max(platform.registry.skills, default=0) + 1
        )
        platform.engine.next_session_id = data.get(
            "next_session_id", max(platform.engine.sessions, default=0) + 1
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StateFileError(f"Malformed platform state: {e}") from e

    return platform


def load_platform_state(
    data_dir: Path | None = None,
    policy: SettlementPolicy | None = None,
    achievements: tuple[AchievementRule, ...] | list[AchievementRule] = DEFAULT_ACHIEVEMENTS,
    clock: Clock | None = None,
) -> LearnPlatform:
    """Load platform from disk, or return a fresh one if no state exists.

    Args:
        data_dir: Base data directory. Defaults to ./data
        policy: Settlement policy for the loaded platform
        achievements: Achievement rules for the loaded platform
        clock: Time source

    Returns:
        LearnPlatform with the persisted state

    Raises:
        StateFileError: If the state file exists but cannot be read
    """
    state_path = get_state_path(data_dir)

    if not state_path.exists():
        logger.debug("platform_state_not_found", path=str(state_path))
        return LearnPlatform(policy=policy, achievements=achievements, clock=clock)

    try:
        with open(state_path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error("platform_state_load_failed", path=str(state_path), error=str(e))
        raise StateFileError(f"Cannot read {state_path}: {e}") from e

    platform = platform_from_dict(data, policy=policy, achievements=achievements, clock=clock)
    logger.debug(
        "platform_state_loaded",
        users=len(platform.registry.users),
        skills=len(platform.registry.skills),
        sessions=len(platform.engine.sessions),
    )
    return platform


def save_platform_state(platform: LearnPlatform, data_dir: Path | None = None) -> Path:
    """Persist platform state to disk.

    Args:
        platform: Platform to save
        data_dir: Base data directory. Defaults to ./data

    Returns:
        Path to saved state file
    """
    state_path = get_state_path(data_dir)
    state_path.parent.mkdir(parents=True, exist_ok=True)

    data = platform_to_dict(platform)
    tmp_path = state_path.with_suffix(".json.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        # The previous state file stays as it was
        tmp_path.unlink(missing_ok=True)
        logger.error("platform_state_save_failed", path=str(state_path), error=str(e))
        raise
    tmp_path.replace(state_path)

    logger.info("platform_state_saved", path=str(state_path))
    return state_path
