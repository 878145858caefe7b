"""Pydantic schemas for Web API.

Serialization models for users, skills, sessions, tokens and events.
Token amounts travel as decimal strings in whole tokens ("12.5"); ratings
in requests are basis points (450 = 4.50) and in responses decimals (4.5).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# USER SCHEMAS
# =============================================================================


class UserCreate(BaseModel):
    """Request body for registering a user."""

    address: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=100)
    is_instructor: bool = False


class UserResponse(BaseModel):
    """Response for a user profile."""

    address: str
    username: str
    is_instructor: bool
    total_skills_taught: int
    total_skills_learned: int
    reputation_score: int
    tokens_earned: str
    tokens_spent: str
    skills_owned: list[int]
    skills_created: list[int]
    registered_at: str
    token_balance: str
    achievements: list[str] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    """One row of a leaderboard."""

    rank: int
    address: str
    username: str
    score: str
    total_skills: int


class LeaderboardResponse(BaseModel):
    """Response for a leaderboard."""

    kind: str
    entries: list[LeaderboardEntry]


# =============================================================================
# SKILL SCHEMAS
# =============================================================================


class SkillCreate(BaseModel):
    """Request body for publishing a skill."""

    instructor: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    duration: int = Field(default=0, ge=0)
    price: str = Field(..., description="Price in whole tokens, e.g. '100'")
    content_hash: str = Field(default="", max_length=200)


class SkillStatusUpdate(BaseModel):
    """Request body for activating or deactivating a skill."""

    by: str
    is_active: bool


class SkillResponse(BaseModel):
    """Response for a skill."""

    id: int
    title: str
    description: str
    category: str
    duration: int
    price: str
    instructor: str
    is_active: bool
    total_students: int
    average_rating: float
    total_ratings: int
    content_hash: str
    created_at: str


class SkillListResponse(BaseModel):
    """Response for list of skills."""

    skills: list[SkillResponse]
    count: int


# =============================================================================
# SESSION SCHEMAS
# =============================================================================


class SessionStartRequest(BaseModel):
    """Request to start a learning session."""

    student: str
    skill_id: int = Field(..., ge=1)


class SessionCompleteRequest(BaseModel):
    """Request to complete a learning session."""

    by: str | None = None
    assessment_score: int
    rating: int = Field(..., description="Rating in basis points (400 = 4.00)")
    feedback: str = Field(default="", max_length=2000)


class SessionCancelRequest(BaseModel):
    """Request to cancel a learning session."""

    by: str


class SessionResponse(BaseModel):
    """Response for a session."""

    id: int
    skill_id: int
    student: str
    instructor: str
    state: str
    escrowed_amount: str
    started_at: str
    ended_at: str | None = None
    assessment_score: int = 0
    rating: float = 0.0
    feedback: str = ""
    reward_amount: str = "0.0"


class CompletionResponse(BaseModel):
    """Response for a completed session."""

    session: SessionResponse
    instructor_payout: str
    reward: str
    passed: bool
    average_rating: float
    reputation_delta: int


class UserSessionsResponse(BaseModel):
    """Session ids for an address."""

    address: str
    session_ids: list[int]


class SessionAnalyticsResponse(BaseModel):
    """Learning analytics for a student."""

    address: str
    total_sessions: int
    completed_sessions: int
    cancelled_sessions: int
    active_sessions: int
    average_score: float | None = None
    total_time_spent: int = 0
    favorite_categories: list[str] = Field(default_factory=list)


# =============================================================================
# TOKEN SCHEMAS
# =============================================================================


class BalanceResponse(BaseModel):
    """Token balance of an address."""

    address: str
    balance: str
    symbol: str


class TransferRequest(BaseModel):
    """Request to transfer tokens."""

    sender: str
    recipient: str
    amount: str


class FaucetRequest(BaseModel):
    """Request for issuer-funded tokens."""

    address: str
    amount: str


# =============================================================================
# EVENT SCHEMAS
# =============================================================================


class PlatformEventResponse(BaseModel):
    """Response for a platform event."""

    seq: int
    event_type: str
    timestamp: int
    addresses: list[str]
    data: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# HEALTH & CONFIG SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ConfigResponse(BaseModel):
    """Public platform configuration."""

    token: dict[str, Any]
    policy: dict[str, Any]
    faucet_enabled: bool
    issuer: str
    total_supply: str


class ErrorResponse(BaseModel):
    """Error body for platform failures."""

    error: str
    detail: str
    field: str | None = None
