"""Token endpoints."""

from fastapi import APIRouter, HTTPException, status

from learnplatform.utils.token_units import parse_token_amount
from learnplatform.web.formatting import tokens
from learnplatform.web.platform import get_config, get_platform, save_platform
from learnplatform.web.schemas import BalanceResponse, FaucetRequest, TransferRequest

router = APIRouter(prefix="/api/tokens", tags=["tokens"])


def _balance(address: str) -> BalanceResponse:
    return BalanceResponse(
        address=address,
        balance=tokens(get_platform().balance_of(address)),
        symbol=get_config().token.symbol,
    )


@router.get("/{address}", response_model=BalanceResponse)
async def get_balance(address: str) -> BalanceResponse:
    """Token balance of an address."""
    return _balance(address)


@router.post("/transfer", response_model=BalanceResponse)
async def transfer(request: TransferRequest) -> BalanceResponse:
    """Transfer tokens; returns the sender's new balance."""
    amount = parse_token_amount(request.amount, get_config().token.decimals)
    get_platform().transfer(request.sender, request.recipient, amount)
    save_platform()
    return _balance(request.sender)


@router.post("/faucet", response_model=BalanceResponse)
async def faucet(request: FaucetRequest) -> BalanceResponse:
    """Mint development tokens from the platform issuer."""
    config = get_config()
    if not config.faucet.enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Faucet is disabled",
        )

    decimals = config.token.decimals
    amount = parse_token_amount(request.amount, decimals)
    limit = parse_token_amount(config.faucet.max_amount, decimals)
    if amount > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Faucet amount exceeds limit of {config.faucet.max_amount}",
        )

    platform = get_platform()
    platform.mint(request.address, amount, caller=platform.issuer)
    save_platform()
    return _balance(request.address)
