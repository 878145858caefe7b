"""Health check and public configuration endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

from learnplatform.web.formatting import tokens
from learnplatform.web.platform import get_config, get_platform
from learnplatform.web.schemas import ConfigResponse, HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version="0.1.0",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/api/config", response_model=ConfigResponse)
async def get_public_config() -> ConfigResponse:
    """Token and settlement settings clients need."""
    config = get_config()
    platform = get_platform()
    return ConfigResponse(
        token={
            "name": config.token.name,
            "symbol": config.token.symbol,
            "decimals": config.token.decimals,
        },
        policy={
            "base_reward": config.policy.base_reward,
            "reputation_divisor": config.policy.reputation_divisor,
            "min_rating": config.policy.min_rating,
            "max_rating": config.policy.max_rating,
            "pass_score": config.policy.pass_score,
        },
        faucet_enabled=config.faucet.enabled,
        issuer=platform.issuer,
        total_supply=tokens(platform.total_supply()),
    )
