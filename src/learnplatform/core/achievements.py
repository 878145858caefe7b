"""Achievement evaluation.

Achievements are derived, never stored: each query runs the ordered rule list
against a user snapshot and returns the labels whose threshold is met, in
rule order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from learnplatform.core.registry import User

# User fields a rule may test
ACHIEVEMENT_STATS = (
    "total_skills_learned",
    "total_skills_taught",
    "reputation_score",
    "tokens_earned",
    "tokens_spent",
    "skills_created",
)


@dataclass(frozen=True)
class AchievementRule:
    """Unlocks ``label`` when ``stat`` reaches ``threshold``."""

    label: str
    stat: str
    threshold: int

    def __post_init__(self):
        if self.stat not in ACHIEVEMENT_STATS:
            raise ValueError(f"Unknown achievement stat: {self.stat}")

    def is_met(self, user: User) -> bool:
        value: Any = getattr(user, self.stat)
        if isinstance(value, list):
            value = len(value)
        return value >= self.threshold


DEFAULT_ACHIEVEMENTS: tuple[AchievementRule, ...] = (
    AchievementRule("First Steps", "total_skills_learned", 1),
    AchievementRule("Dedicated Learner", "total_skills_learned", 5),
    AchievementRule("Knowledge Seeker", "total_skills_learned", 10),
    AchievementRule("First Lesson", "total_skills_taught", 1),
    AchievementRule("Mentor", "total_skills_taught", 10),
    AchievementRule("Rising Star", "reputation_score", 50),
    AchievementRule("Master Instructor", "reputation_score", 500),
)


def evaluate_achievements(
    user: User,
    rules: tuple[AchievementRule, ...] | list[AchievementRule] = DEFAULT_ACHIEVEMENTS,
) -> list[str]:
    """Labels of all rules the user currently satisfies, in rule order."""
    return [rule.label for rule in rules if rule.is_met(user)]
