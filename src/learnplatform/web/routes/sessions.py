"""Learning session endpoints."""

from collections import Counter

from fastapi import APIRouter, status

from learnplatform.core.session_engine import SessionState
from learnplatform.web.formatting import completion_response, session_response
from learnplatform.web.platform import get_platform, save_platform
from learnplatform.web.schemas import (
    CompletionResponse,
    SessionAnalyticsResponse,
    SessionCancelRequest,
    SessionCompleteRequest,
    SessionResponse,
    SessionStartRequest,
    UserSessionsResponse,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

# How many categories the analytics report as favourites
FAVORITE_CATEGORIES = 3


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(request: SessionStartRequest) -> SessionResponse:
    """Start a learning session; the skill price moves into escrow."""
    session = get_platform().start_session(request.student, request.skill_id)
    save_platform()
    return session_response(session)


@router.get("/user/{address}", response_model=UserSessionsResponse)
async def get_user_sessions(address: str) -> UserSessionsResponse:
    """Ids of sessions where the address is student or instructor."""
    return UserSessionsResponse(
        address=address,
        session_ids=get_platform().get_user_sessions(address),
    )


@router.get("/analytics/{address}", response_model=SessionAnalyticsResponse)
async def get_session_analytics(address: str) -> SessionAnalyticsResponse:
    """Learning analytics computed from a student's sessions."""
    platform = get_platform()
    sessions = [s for s in platform.list_sessions() if s.student == address]

    completed = [s for s in sessions if s.state == SessionState.COMPLETED]
    cancelled = [s for s in sessions if s.state == SessionState.CANCELLED]
    active = [s for s in sessions if s.state == SessionState.ACTIVE]

    average_score = None
    if completed:
        average_score = round(sum(s.assessment_score for s in completed) / len(completed), 2)

    skills = {s.skill_id: platform.get_skill(s.skill_id) for s in sessions}
    total_time = sum(skills[s.skill_id].duration for s in completed)

    # Counter.most_common keeps first-seen order for ties
    categories = Counter(
        skills[s.skill_id].category for s in sessions if s.state != SessionState.CANCELLED
    )
    favorites = [c for c, _ in categories.most_common(FAVORITE_CATEGORIES)]

    return SessionAnalyticsResponse(
        address=address,
        total_sessions=len(sessions),
        completed_sessions=len(completed),
        cancelled_sessions=len(cancelled),
        active_sessions=len(active),
        average_score=average_score,
        total_time_spent=total_time,
        favorite_categories=favorites,
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: int) -> SessionResponse:
    """Get session details."""
    return session_response(get_platform().get_session(session_id))


@router.post("/{session_id}/complete", response_model=CompletionResponse)
async def complete_session(session_id: int, request: SessionCompleteRequest) -> CompletionResponse:
    """Complete a session: pay the instructor, reward the student."""
    result = get_platform().complete_session(
        session_id,
        assessment_score=request.assessment_score,
        rating=request.rating,
        feedback=request.feedback,
        by=request.by,
    )
    save_platform()
    return completion_response(result)


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(session_id: int, request: SessionCancelRequest) -> SessionResponse:
    """Cancel a session and refund the student."""
    session = get_platform().cancel_session(session_id, by=request.by)
    save_platform()
    return session_response(session)
