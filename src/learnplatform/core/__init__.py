"""Core platform logic.

Modules:
- ledger: Token balances, transfers and issuer-only minting
- registry: User profiles and skill listings
- session_engine: Session state machine with escrow and settlement
- achievements: Achievement rules evaluated over user statistics
- events: Committed-operation events and the outbound bus
- platform: Serialized facade over all of the above
- state_store: JSON persistence of the whole platform
"""

from learnplatform.core.achievements import (
    DEFAULT_ACHIEVEMENTS,
    AchievementRule,
    evaluate_achievements,
)
from learnplatform.core.errors import PlatformError
from learnplatform.core.events import EventBus, PlatformEvent, PlatformEventType
from learnplatform.core.ledger import PLATFORM_ISSUER, Ledger
from learnplatform.core.platform import LearnPlatform
from learnplatform.core.registry import Registry, Skill, User
from learnplatform.core.session_engine import (
    CompletionResult,
    Session,
    SessionEngine,
    SessionState,
    SettlementPolicy,
)

__all__ = [
    "DEFAULT_ACHIEVEMENTS",
    "AchievementRule",
    "evaluate_achievements",
    "PlatformError",
    "EventBus",
    "PlatformEvent",
    "PlatformEventType",
    "PLATFORM_ISSUER",
    "Ledger",
    "LearnPlatform",
    "Registry",
    "Skill",
    "User",
    "CompletionResult",
    "Session",
    "SessionEngine",
    "SessionState",
    "SettlementPolicy",
]
