"""User endpoints."""

from fastapi import APIRouter, HTTPException, Query, status

from learnplatform.web.formatting import skill_response, tokens, user_response
from learnplatform.web.platform import get_platform, save_platform
from learnplatform.web.schemas import (
    LeaderboardEntry,
    LeaderboardResponse,
    SkillListResponse,
    UserCreate,
    UserResponse,
)

router = APIRouter(prefix="/api/users", tags=["users"])

# Leaderboard kind -> user field it ranks by
LEADERBOARD_FIELDS = {
    "reputation": "reputation_score",
    "earnings": "tokens_earned",
    "skills_taught": "total_skills_taught",
}


def _load_user_response(address: str) -> UserResponse:
    platform = get_platform()
    user = platform.get_user(address)
    return user_response(
        user,
        balance=platform.balance_of(address),
        achievements=platform.achievements(address),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate) -> UserResponse:
    """Register a new user."""
    platform = get_platform()
    platform.register_user(
        address=user_data.address,
        username=user_data.username,
        is_instructor=user_data.is_instructor,
    )
    save_platform()
    return _load_user_response(user_data.address)


@router.get("/leaderboard/{kind}", response_model=LeaderboardResponse)
async def get_leaderboard(
    kind: str,
    limit: int = Query(default=10, ge=1, le=100),
) -> LeaderboardResponse:
    """Rank users by reputation, earnings or skills taught."""
    if kind not in LEADERBOARD_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown leaderboard '{kind}'. Use one of: {', '.join(LEADERBOARD_FIELDS)}",
        )

    field = LEADERBOARD_FIELDS[kind]
    users = get_platform().list_users()
    ranked = sorted(users, key=lambda u: (-getattr(u, field), u.username))[:limit]
    entries = [
        LeaderboardEntry(
            rank=i,
            address=u.address,
            username=u.username,
            score=tokens(u.tokens_earned) if kind == "earnings" else str(getattr(u, field)),
            total_skills=u.total_skills_taught + u.total_skills_learned,
        )
        for i, u in enumerate(ranked, start=1)
    ]
    return LeaderboardResponse(kind=kind, entries=entries)


@router.get("/{address}", response_model=UserResponse)
async def get_user(address: str) -> UserResponse:
    """Get a user profile with token balance and achievements."""
    return _load_user_response(address)


@router.get("/{address}/skills/created", response_model=SkillListResponse)
async def get_created_skills(address: str) -> SkillListResponse:
    """Skills published by a user."""
    platform = get_platform()
    user = platform.get_user(address)
    skills = [skill_response(platform.get_skill(i)) for i in user.skills_created]
    return SkillListResponse(skills=skills, count=len(skills))


@router.get("/{address}/skills/learned", response_model=SkillListResponse)
async def get_learned_skills(address: str) -> SkillListResponse:
    """Skills a user is enrolled in or has completed."""
    platform = get_platform()
    user = platform.get_user(address)
    skills = [skill_response(platform.get_skill(i)) for i in user.skills_owned]
    return SkillListResponse(skills=skills, count=len(skills))
