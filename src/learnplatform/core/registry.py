"""User and skill registry.

Owns user profiles and skill listings. Identity fields (address, username,
instructor) are fixed at creation; statistic fields are only changed by the
session engine through ``record_completion`` and direct counter updates.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from learnplatform.core.errors import (
    AlreadyRegisteredError,
    InvalidPriceError,
    InvalidUsernameError,
    NotInstructorError,
    NotRegisteredError,
    SkillNotFoundError,
    UnauthorizedError,
    UsernameTakenError,
)
from learnplatform.core.ledger import MAX_AMOUNT

logger = structlog.get_logger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class User:
    """A registered platform user."""

    address: str
    username: str
    is_instructor: bool = False
    total_skills_taught: int = 0
    total_skills_learned: int = 0
    reputation_score: int = 0
    tokens_earned: int = 0
    tokens_spent: int = 0
    skills_owned: list[int] = field(default_factory=list)
    skills_created: list[int] = field(default_factory=list)
    registered_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": self.address,
            "username": self.username,
            "is_instructor": self.is_instructor,
            "total_skills_taught": self.total_skills_taught,
            "total_skills_learned": self.total_skills_learned,
            "reputation_score": self.reputation_score,
            "tokens_earned": self.tokens_earned,
            "tokens_spent": self.tokens_spent,
            "skills_owned": list(self.skills_owned),
            "skills_created": list(self.skills_created),
            "registered_at": self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        """Create from dictionary."""
        return cls(
            address=data["address"],
            username=data["username"],
            is_instructor=data.get("is_instructor", False),
            total_skills_taught=data.get("total_skills_taught", 0),
            total_skills_learned=data.get("total_skills_learned", 0),
            reputation_score=data.get("reputation_score", 0),
            tokens_earned=data.get("tokens_earned", 0),
            tokens_spent=data.get("tokens_spent", 0),
            skills_owned=list(data.get("skills_owned", [])),
            skills_created=list(data.get("skills_created", [])),
            registered_at=data.get("registered_at", 0),
        )


@dataclass
class Skill:
    """A skill listing published by an instructor.

    ``average_rating`` is in basis points (rating x 100). ``rating_total`` is
    the exact sum of all ratings received, so the average never drifts.
    """

    id: int
    title: str
    description: str
    category: str
    duration: int
    price: int
    instructor: str
    content_hash: str = ""
    is_active: bool = True
    total_students: int = 0
    average_rating: int = 0
    total_ratings: int = 0
    rating_total: int = 0
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "duration": self.duration,
            "price": self.price,
            "instructor": self.instructor,
            "content_hash": self.content_hash,
            "is_active": self.is_active,
            "total_students": self.total_students,
            "average_rating": self.average_rating,
            "total_ratings": self.total_ratings,
            "rating_total": self.rating_total,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Skill:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            category=data.get("category", ""),
            duration=data.get("duration", 0),
            price=data["price"],
            instructor=data["instructor"],
            content_hash=data.get("content_hash", ""),
            is_active=data.get("is_active", True),
            total_students=data.get("total_students", 0),
            average_rating=data.get("average_rating", 0),
            total_ratings=data.get("total_ratings", 0),
            rating_total=data.get("rating_total", 0),
            created_at=data.get("created_at", 0),
        )


# =============================================================================
# REGISTRY
# =============================================================================


class Registry:
    """Stores users and skills and assigns skill ids."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or system_clock
        self.users: dict[str, User] = {}
        self.skills: dict[int, Skill] = {}
        self.next_skill_id = 1

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def register_user(self, address: str, username: str, is_instructor: bool) -> User:
        """Create a user profile for an address.

        Args:
            address: Account address
            username: Unique display name (case-sensitive)
            is_instructor: Whether the user may publish skills

        Returns:
            The new User, with all counters at zero

        Raises:
            AlreadyRegisteredError: If address already has a profile
            UsernameTakenError: If another profile uses this username
            InvalidUsernameError: If username is empty
        """
        if address in self.users:
            raise AlreadyRegisteredError(address)
        if not username or not username.strip():
            raise InvalidUsernameError(username)
        if any(u.username == username for u in self.users.values()):
            raise UsernameTakenError(username)

        user = User(
            address=address,
            username=username,
            is_instructor=is_instructor,
            registered_at=self._clock(),
        )
        self.users[address] = user
        logger.info("user_registered", address=address, is_instructor=is_instructor)
        return user

    def is_registered(self, address: str) -> bool:
        return address in self.users

    def get_user(self, address: str) -> User:
        """Get user by address.

        Raises:
            NotRegisteredError: If address has no profile
        """
        user = self.users.get(address)
        if user is None:
            raise NotRegisteredError(address)
        return user

    def list_users(self) -> list[User]:
        return list(self.users.values())

    # -------------------------------------------------------------------------
    # Skills
    # -------------------------------------------------------------------------

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
        """Publish a new skill listing.

        Raises:
            NotRegisteredError: If instructor has no profile
            NotInstructorError: If the profile is not an instructor
            InvalidPriceError: If price <= 0 or above MAX_AMOUNT
        """
        user = self.users.get(instructor)
        if user is None:
            raise NotRegisteredError(instructor, field="instructor")
        if not user.is_instructor:
            raise NotInstructorError(instructor)
        if price <= 0 or price > MAX_AMOUNT:
            raise InvalidPriceError(price)

        skill = Skill(
            id=self.next_skill_id,
            title=title,
            description=description,
            category=category,
            duration=duration,
            price=price,
            instructor=instructor,
            content_hash=content_hash,
            created_at=self._clock(),
        )
        self.skills[skill.id] = skill
        self.next_skill_id += 1
        user.skills_created.append(skill.id)

        logger.info(
            "skill_created",
            skill_id=skill.id,
            instructor=instructor,
            category=category,
            price=price,
        )
        return skill

    def get_skill(self, skill_id: int) -> Skill:
        """Get skill by id.

        Raises:
            SkillNotFoundError: If no skill has this id
        """
        skill = self.skills.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(skill_id)
        return skill

    def total_skills(self) -> int:
        return len(self.skills)

    def list_skills(self, active_only: bool = False) -> list[Skill]:
        """List skills in creation order."""
        skills = sorted(self.skills.values(), key=lambda s: s.id)
        if active_only:
            return [s for s in skills if s.is_active]
        return skills

    def get_skills_by_category(self, category: str) -> list[int]:
        """Get ids of skills in a category (exact match), in creation order."""
        return [s.id for s in self.list_skills() if s.category == category]

    def set_skill_active(self, skill_id: int, is_active: bool, by: str) -> Skill:
        """Activate or deactivate a skill. Only its instructor may do this."""
        skill = self.get_skill(skill_id)
        if by != skill.instructor:
            raise UnauthorizedError(by, f"change status of skill {skill_id}")
        skill.is_active = is_active
        logger.info("skill_status_changed", skill_id=skill_id, is_active=is_active)
        return skill

    def record_completion(self, skill_id: int, rating: int) -> Skill:
        """Count one more finished student and fold a rating into the average.

        Internal to the session engine; rating is already validated.
        """
        skill = self.get_skill(skill_id)
        skill.total_students += 1
        skill.total_ratings += 1
        skill.rating_total += rating
        skill.average_rating = skill.rating_total // skill.total_ratings
        return skill
