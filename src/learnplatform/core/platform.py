"""Platform facade: the single entry point callers use.

Wires ledger, registry, session engine and achievement rules together and
serializes every operation behind one lock, so concurrent callers (web
requests, CLI, tests) observe operations committing one at a time.

Reads return copies; callers can never mutate platform state directly.
Events are numbered inside the lock and delivered after it is released, so a
slow or failing listener cannot block or undo a commit.
"""

from __future__ import annotations

import copy
import threading
from typing import Callable, TypeVar

import structlog

from learnplatform.core.achievements import (
    DEFAULT_ACHIEVEMENTS,
    AchievementRule,
    evaluate_achievements,
)
from learnplatform.core.events import EventBus, PlatformEvent, PlatformEventType
from learnplatform.core.ledger import PLATFORM_ISSUER, Ledger
from learnplatform.core.registry import Clock, Registry, Skill, User, system_clock
from learnplatform.core.session_engine import (
    CompletionResult,
    Session,
    SessionEngine,
    SettlementPolicy,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class LearnPlatform:
    """Session-and-reputation engine with its ledger and registry."""

    def __init__(
        self,
        policy: SettlementPolicy | None = None,
        achievements: tuple[AchievementRule, ...] | list[AchievementRule] = DEFAULT_ACHIEVEMENTS,
        clock: Clock | None = None,
        issuer: str = PLATFORM_ISSUER,
        event_bus: EventBus | None = None,
    ):
        self._clock = clock or system_clock
        self._lock = threading.RLock()
        self.ledger = Ledger(issuer=issuer)
        self.registry = Registry(clock=self._clock)
        self.engine = SessionEngine(
            self.registry, self.ledger, policy=policy, clock=self._clock
        )
        self.achievement_rules = tuple(achievements)
        self.events = event_bus or EventBus()

    @property
    def policy(self) -> SettlementPolicy:
        return self.engine.policy

    @property
    def issuer(self) -> str:
        return self.ledger.issuer

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _read(self, fn: Callable[[], T]) -> T:
        with self._lock:
            return copy.deepcopy(fn())

    def _emit(
        self, event_type: PlatformEventType, addresses: tuple[str, ...], **data
    ) -> PlatformEvent:
        """Record an event for the operation being committed.

        Must be called with the lock held, so sequence numbers follow commit
        order. Subscribers see it once ``_deliver`` runs after the lock is
        released.
        """
        return self.events.record(
            PlatformEvent(
                event_type=event_type,
                data=data,
                addresses=addresses,
                timestamp=self._clock(),
            )
        )

    def _deliver(self) -> None:
        self.events.flush()

    def subscribe(self, callback: Callable[[PlatformEvent], None]) -> Callable[[], None]:
        """Register a listener for committed events."""
        return self.events.subscribe(callback)

    # -------------------------------------------------------------------------
    # Users & skills
    # -------------------------------------------------------------------------

    def register_user(self, address: str, username: str, is_instructor: bool = False) -> User:
        with self._lock:
            user = self.registry.register_user(address, username, is_instructor)
            result = copy.deepcopy(user)
            self._emit(
                PlatformEventType.USER_REGISTERED,
                (address,),
                address=address,
                username=username,
                is_instructor=is_instructor,
            )
        self._deliver()
        return result

    def create_skill(
        self,
        instructor: str,
        title: str,
        description: str,
        category: str,
        duration: int,
        price: int,
        content_hash: str = "",
    ) -> Skill:
        with self._lock:
            skill = self.registry.create_skill(
                instructor, title, description, category, duration, price, content_hash
            )
            result = copy.deepcopy(skill)
            self._emit(
                PlatformEventType.SKILL_CREATED,
                (instructor,),
                skill_id=skill.id,
                instructor=instructor,
                title=title,
                category=category,
                price=price,
            )
        self._deliver()
        return result

    def set_skill_active(self, skill_id: int, is_active: bool, by: str) -> Skill:
        with self._lock:
            skill = self.registry.set_skill_active(skill_id, is_active, by)
            result = copy.deepcopy(skill)
            self._emit(
                PlatformEventType.SKILL_STATUS_CHANGED,
                (skill.instructor,),
                skill_id=skill_id,
                is_active=is_active,
            )
        self._deliver()
        return result

    def get_user(self, address: str) -> User:
        return self._read(lambda: self.registry.get_user(address))

    def is_registered(self, address: str) -> bool:
        with self._lock:
            return self.registry.is_registered(address)

    def list_users(self) -> list[User]:
        return self._read(self.registry.list_users)

    def get_skill(self, skill_id: int) -> Skill:
        return self._read(lambda: self.registry.get_skill(skill_id))

    def list_skills(self, active_only: bool = False) -> list[Skill]:
        return self._read(lambda: self.registry.list_skills(active_only=active_only))

    def get_skills_by_category(self, category: str) -> list[int]:
        return self._read(lambda: self.registry.get_skills_by_category(category))

    def total_skills(self) -> int:
        with self._lock:
            return self.registry.total_skills()

    def achievements(self, address: str) -> list[str]:
        """Achievement labels currently unlocked by a user."""
        user = self.get_user(address)
        return evaluate_achievements(user, self.achievement_rules)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def start_session(self, student: str, skill_id: int) -> Session:
        with self._lock:
            session = self.engine.start_session(student, skill_id)
            result = copy.deepcopy(session)
            self._emit(
                PlatformEventType.SESSION_STARTED,
                (session.student, session.instructor),
                session_id=session.id,
                skill_id=skill_id,
                student=student,
                instructor=session.instructor,
                escrowed_amount=session.escrowed_amount,
            )
        self._deliver()
        return result

    def complete_session(
        self,
        session_id: int,
        assessment_score: int,
        rating: int,
        feedback: str = "",
        by: str | None = None,
    ) -> CompletionResult:
        with self._lock:
            outcome = self.engine.complete_session(
                session_id, assessment_score, rating, feedback, by=by
            )
            result = copy.deepcopy(outcome)
            session = result.session
            parties = (session.student, session.instructor)
            self._emit(
                PlatformEventType.SESSION_COMPLETED,
                parties,
                session_id=session_id,
                skill_id=session.skill_id,
                rating=rating,
                tokens_earned=result.reward,
                instructor_payout=result.instructor_payout,
            )
            self._emit(
                PlatformEventType.ASSESSMENT_SUBMITTED,
                parties,
                session_id=session_id,
                score=assessment_score,
                passed=result.passed,
            )
        self._deliver()
        return result

    def cancel_session(self, session_id: int, by: str) -> Session:
        with self._lock:
            session = self.engine.get_session(session_id)
            refund = session.escrowed_amount
            self.engine.cancel_session(session_id, by)
            result = copy.deepcopy(session)
            self._emit(
                PlatformEventType.SESSION_CANCELLED,
                (session.student, session.instructor),
                session_id=session_id,
                skill_id=session.skill_id,
                cancelled_by=by,
                refund=refund,
            )
        self._deliver()
        return result

    def get_session(self, session_id: int) -> Session:
        return self._read(lambda: self.engine.get_session(session_id))

    def get_user_sessions(self, address: str) -> list[int]:
        return self._read(lambda: self.engine.get_user_sessions(address))

    def list_sessions(self) -> list[Session]:
        return self._read(
            lambda: sorted(self.engine.sessions.values(), key=lambda s: s.id)
        )

    def total_escrowed(self) -> int:
        with self._lock:
            return self.engine.total_escrowed()

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def balance_of(self, address: str) -> int:
        with self._lock:
            return self.ledger.balance_of(address)

    def total_supply(self) -> int:
        with self._lock:
            return self.ledger.total_supply

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        with self._lock:
            self.ledger.transfer(sender, recipient, amount)
            self._emit(
                PlatformEventType.TRANSFER,
                (sender, recipient),
                sender=sender,
                recipient=recipient,
                amount=amount,
            )
        self._deliver()

    def mint(self, to: str, amount: int, caller: str) -> None:
        """Mint tokens; only the issuer identity may call this."""
        with self._lock:
            self.ledger.mint(to, amount, caller=caller)
            self._emit(
                PlatformEventType.TOKENS_MINTED,
                (to,),
                to=to,
                amount=amount,
            )
        self._deliver()
        logger.info("tokens_minted", to=to, amount=amount)
