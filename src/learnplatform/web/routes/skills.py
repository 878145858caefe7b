"""Skill endpoints."""

from fastapi import APIRouter, Query, status

from learnplatform.utils.token_units import parse_token_amount
from learnplatform.web.formatting import skill_response
from learnplatform.web.platform import get_config, get_platform, save_platform
from learnplatform.web.schemas import (
    SkillCreate,
    SkillListResponse,
    SkillResponse,
    SkillStatusUpdate,
)

router = APIRouter(prefix="/api/skills", tags=["skills"])


@router.get("", response_model=SkillListResponse)
async def list_skills(
    category: str | None = Query(default=None),
    instructor: str | None = Query(default=None),
    search: str | None = Query(default=None),
) -> SkillListResponse:
    """List active skills, optionally filtered.

    - category: exact match
    - instructor: address, case-insensitive
    - search: substring of title, description or category, case-insensitive
    """
    skills = get_platform().list_skills(active_only=True)

    if category:
        skills = [s for s in skills if s.category == category]

    if instructor:
        wanted = instructor.lower()
        skills = [s for s in skills if s.instructor.lower() == wanted]

    if search:
        needle = search.lower()
        skills = [
            s
            for s in skills
            if needle in s.title.lower()
            or needle in s.description.lower()
            or needle in s.category.lower()
        ]

    items = [skill_response(s) for s in skills]
    return SkillListResponse(skills=items, count=len(items))


@router.post("", response_model=SkillResponse, status_code=status.HTTP_201_CREATED)
async def create_skill(request: SkillCreate) -> SkillResponse:
    """Publish a new skill."""
    price = parse_token_amount(request.price, get_config().token.decimals)
    skill = get_platform().create_skill(
        instructor=request.instructor,
        title=request.title,
        description=request.description,
        category=request.category,
        duration=request.duration,
        price=price,
        content_hash=request.content_hash,
    )
    save_platform()
    return skill_response(skill)


@router.get("/category/{category}", response_model=SkillListResponse)
async def get_skills_by_category(category: str) -> SkillListResponse:
    """All skills in a category (including inactive), in creation order."""
    platform = get_platform()
    items = [skill_response(platform.get_skill(i)) for i in platform.get_skills_by_category(category)]
    return SkillListResponse(skills=items, count=len(items))


@router.get("/{skill_id}", response_model=SkillResponse)
async def get_skill(skill_id: int) -> SkillResponse:
    """Get a skill by id."""
    return skill_response(get_platform().get_skill(skill_id))


@router.patch("/{skill_id}/status", response_model=SkillResponse)
async def set_skill_status(skill_id: int, request: SkillStatusUpdate) -> SkillResponse:
    """Activate or deactivate a skill (instructor only)."""
    skill = get_platform().set_skill_active(skill_id, request.is_active, by=request.by)
    save_platform()
    return skill_response(skill)
