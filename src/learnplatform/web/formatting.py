"""Conversions from core records to API response models."""

from __future__ import annotations

from datetime import datetime, timezone

from learnplatform.core.registry import Skill, User
from learnplatform.core.session_engine import CompletionResult, Session
from learnplatform.utils.token_units import bps_to_rating, format_token_amount
from learnplatform.web.platform import get_config
from learnplatform.web.schemas import (
    CompletionResponse,
    SessionResponse,
    SkillResponse,
    UserResponse,
)


def iso_timestamp(seconds: int) -> str:
    """Unix seconds to ISO-8601 UTC."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def tokens(amount: int) -> str:
    """Format an amount with the configured token decimals."""
    return format_token_amount(amount, get_config().token.decimals)


def skill_response(skill: Skill) -> SkillResponse:
    return SkillResponse(
        id=skill.id,
        title=skill.title,
        description=skill.description,
        category=skill.category,
        duration=skill.duration,
        price=tokens(skill.price),
        instructor=skill.instructor,
        is_active=skill.is_active,
        total_students=skill.total_students,
        average_rating=bps_to_rating(skill.average_rating),
        total_ratings=skill.total_ratings,
        content_hash=skill.content_hash,
        created_at=iso_timestamp(skill.created_at),
    )


def user_response(user: User, balance: int, achievements: list[str]) -> UserResponse:
    return UserResponse(
        address=user.address,
        username=user.username,
        is_instructor=user.is_instructor,
        total_skills_taught=user.total_skills_taught,
        total_skills_learned=user.total_skills_learned,
        reputation_score=user.reputation_score,
        tokens_earned=tokens(user.tokens_earned),
        tokens_spent=tokens(user.tokens_spent),
        skills_owned=list(user.skills_owned),
        skills_created=list(user.skills_created),
        registered_at=iso_timestamp(user.registered_at),
        token_balance=tokens(balance),
        achievements=achievements,
    )


def session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        skill_id=session.skill_id,
        student=session.student,
        instructor=session.instructor,
        state=session.state.value,
        escrowed_amount=tokens(session.escrowed_amount),
        started_at=iso_timestamp(session.started_at),
        ended_at=iso_timestamp(session.ended_at) if session.ended_at else None,
        assessment_score=session.assessment_score,
        rating=bps_to_rating(session.rating),
        feedback=session.feedback,
        reward_amount=tokens(session.reward_amount),
    )


def completion_response(result: CompletionResult) -> CompletionResponse:
    return CompletionResponse(
        session=session_response(result.session),
        instructor_payout=tokens(result.instructor_payout),
        reward=tokens(result.reward),
        passed=result.passed,
        average_rating=bps_to_rating(result.average_rating),
        reputation_delta=result.reputation_delta,
    )
