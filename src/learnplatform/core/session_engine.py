"""Learning-session state machine with escrow and settlement.

Session lifecycle:
    ACTIVE -> COMPLETED  (escrow paid to instructor, reward minted to student)
    ACTIVE -> CANCELLED  (escrow refunded to student)

Both end states are terminal. Every operation checks all of its
preconditions before it touches the ledger or the registry, so a failure
leaves no partial change behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from learnplatform.core.errors import (
    InvalidRatingError,
    InvalidScoreError,
    InvalidStateError,
    SelfEnrollmentError,
    SessionNotFoundError,
    SkillInactiveError,
    UnauthorizedError,
)
from learnplatform.core.ledger import Ledger
from learnplatform.core.registry import Clock, Registry, system_clock

logger = structlog.get_logger(__name__)


# =============================================================================
# POLICY
# =============================================================================


@dataclass(frozen=True)
class SettlementPolicy:
    """Constants used when a session settles.

    Ratings are in basis points (400 = 4.00 stars).
    """

    base_reward: int = 10 * 10**18
    reputation_divisor: int = 100
    min_rating: int = 1
    max_rating: int = 500
    pass_score: int = 70

    def reward_for(self, assessment_score: int) -> int:
        """Reward minted to the student for an assessment score (floor)."""
        return self.base_reward * assessment_score // 100

    def reputation_delta(self, rating: int) -> int:
        """Reputation gained by the instructor for a rating (floor)."""
        return rating // self.reputation_divisor

    def passed(self, assessment_score: int) -> bool:
        return assessment_score >= self.pass_score


# =============================================================================
# DATA CLASSES
# =============================================================================


class SessionState(str, Enum):
    """Session lifecycle state."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Session:
    """A learning session of one student on one skill."""

    id: int
    skill_id: int
    student: str
    instructor: str
    escrowed_amount: int
    started_at: int
    state: SessionState = SessionState.ACTIVE
    ended_at: int = 0
    assessment_score: int = 0
    rating: int = 0
    feedback: str = ""
    reward_amount: int = 0

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "skill_id": self.skill_id,
            "student": self.student,
            "instructor": self.instructor,
            "escrowed_amount": self.escrowed_amount,
            "started_at": self.started_at,
            "state": self.state.value,
            "ended_at": self.ended_at,
            "assessment_score": self.assessment_score,
            "rating": self.rating,
            "feedback": self.feedback,
            "reward_amount": self.reward_amount,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            skill_id=data["skill_id"],
            student=data["student"],
            instructor=data["instructor"],
            escrowed_amount=data.get("escrowed_amount", 0),
            started_at=data.get("started_at", 0),
            state=SessionState(data.get("state", "active")),
            ended_at=data.get("ended_at", 0),
            assessment_score=data.get("assessment_score", 0),
            rating=data.get("rating", 0),
            feedback=data.get("feedback", ""),
            reward_amount=data.get("reward_amount", 0),
        )


@dataclass
class CompletionResult:
    """Outcome of a successful session completion."""

    session: Session
    instructor_payout: int
    reward: int
    passed: bool
    average_rating: int
    reputation_delta: int


# =============================================================================
# ENGINE
# =============================================================================


class SessionEngine:
    """Runs the session state machine over a registry and a ledger.

    Escrowed funds are held by the engine (``Session.escrowed_amount``), not
    by any ledger account, so that::

        ledger.total_balance() + engine.total_escrowed() == ledger.total_supply
    """

    def __init__(
        self,
        registry: Registry,
        ledger: Ledger,
        policy: SettlementPolicy | None = None,
        clock: Clock | None = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.policy = policy or SettlementPolicy()
        self._clock = clock or system_clock
        self.sessions: dict[int, Session] = {}
        self.next_session_id = 1

    def get_session(self, session_id: int) -> Session:
        """Get session by id.

        Raises:
            SessionNotFoundError: If no session has this id
        """
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_user_sessions(self, address: str) -> list[int]:
        """Ids of sessions where address is the student or the instructor."""
        return [
            s.id
            for s in sorted(self.sessions.values(), key=lambda s: s.id)
            if address in (s.student, s.instructor)
        ]

    def total_escrowed(self) -> int:
        """Funds currently held for active sessions."""
        return sum(s.escrowed_amount for s in self.sessions.values() if s.is_active)

    def start_session(self, student: str, skill_id: int) -> Session:
        """Enrol a student in a skill, moving its price into escrow.

        Args:
            student: Address of the enrolling student
            skill_id: Skill to learn

        Returns:
            The new ACTIVE Session

        Raises:
            NotRegisteredError: If student has no profile
            SkillNotFoundError: If skill does not exist
            SkillInactiveError: If skill has been deactivated
            SelfEnrollmentError: If student is the skill's instructor
            InsufficientBalanceError: If student cannot pay the price
        """
        user = self.registry.get_user(student)
        skill = self.registry.get_skill(skill_id)
        if not skill.is_active:
            raise SkillInactiveError(skill_id)
        if student == skill.instructor:
            raise SelfEnrollmentError(student, skill_id)

        # Last check, and the first mutation
        self.ledger.debit(student, skill.price)

        session = Session(
            id=self.next_session_id,
            skill_id=skill_id,
            student=student,
            instructor=skill.instructor,
            escrowed_amount=skill.price,
            started_at=self._clock(),
        )
        self.sessions[session.id] = session
        self.next_session_id += 1

        if skill_id not in user.skills_owned:
            user.skills_owned.append(skill_id)

        logger.info(
            "session_started",
            session_id=session.id,
            skill_id=skill_id,
            student=student,
            escrowed=session.escrowed_amount,
        )
        return session

    def complete_session(
        self,
        session_id: int,
        assessment_score: int,
        rating: int,
        feedback: str = "",
        by: str | None = None,
    ) -> CompletionResult:
        """Settle an active session.

        Pays the escrow to the instructor, mints the reward to the student and
        updates skill and user statistics.

        Args:
            session_id: Session to complete
            assessment_score: Student's score, 0-100
            rating: Rating in basis points, within the policy bounds
            feedback: Free-text feedback
            by: Caller; when given it must be the student

        Raises:
            SessionNotFoundError: If session does not exist
            InvalidStateError: If session is not ACTIVE
            UnauthorizedError: If by is given and is not the student
            InvalidRatingError: If rating is out of bounds
            InvalidScoreError: If assessment_score is outside 0-100
        """
        session = self.get_session(session_id)
        if not session.is_active:
            raise InvalidStateError(session_id, session.state.value)
        if by is not None and by != session.student:
            raise UnauthorizedError(by, f"complete session {session_id}")
        policy = self.policy
        if not policy.min_rating <= rating <= policy.max_rating:
            raise InvalidRatingError(rating, policy.min_rating, policy.max_rating)
        if not 0 <= assessment_score <= 100:
            raise InvalidScoreError(assessment_score)

        student = self.registry.get_user(session.student)
        instructor = self.registry.get_user(session.instructor)
        payout = session.escrowed_amount
        reward = policy.reward_for(assessment_score)
        delta = policy.reputation_delta(rating)

        # Settlement: release escrow, mint reward
        self.ledger.credit(instructor.address, payout)
        if reward > 0:
            self.ledger.mint(student.address, reward, caller=self.ledger.issuer)

        session.state = SessionState.COMPLETED
        session.escrowed_amount = 0
        session.ended_at = self._clock()
        session.assessment_score = assessment_score
        session.rating = rating
        session.feedback = feedback
        session.reward_amount = reward

        skill = self.registry.record_completion(session.skill_id, rating)

        student.total_skills_learned += 1
        student.tokens_spent += payout
        student.tokens_earned += reward
        instructor.total_skills_taught += 1
        instructor.tokens_earned += payout
        instructor.reputation_score += delta

        logger.info(
            "session_completed",
            session_id=session_id,
            rating=rating,
            score=assessment_score,
            payout=payout,
            reward=reward,
        )
        return CompletionResult(
            session=session,
            instructor_payout=payout,
            reward=reward,
            passed=policy.passed(assessment_score),
            average_rating=skill.average_rating,
            reputation_delta=delta,
        )

    def cancel_session(self, session_id: int, by: str) -> Session:
        """Cancel an active session and refund the student in full.

        Raises:
            SessionNotFoundError: If session does not exist
            InvalidStateError: If session is not ACTIVE
            UnauthorizedError: If by is neither the student nor the instructor
        """
        session = self.get_session(session_id)
        if not session.is_active:
            raise InvalidStateError(session_id, session.state.value)
        if by not in (session.student, session.instructor):
            raise UnauthorizedError(by, f"cancel session {session_id}")

        refund = session.escrowed_amount
        self.ledger.credit(session.student, refund)
        session.state = SessionState.CANCELLED
        session.escrowed_amount = 0
        session.ended_at = self._clock()

        # Ownership only survives if another live or finished session backs it
        still_owned = any(
            s.student == session.student
            and s.skill_id == session.skill_id
            and s.state != SessionState.CANCELLED
            for s in self.sessions.values()
        )
        student = self.registry.users.get(session.student)
        if student is not None and not still_owned and session.skill_id in student.skills_owned:
            student.skills_owned.remove(session.skill_id)

        logger.info("session_cancelled", session_id=session_id, by=by, refund=refund)
        return session
