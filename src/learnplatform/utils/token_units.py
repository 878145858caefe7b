"""Token amount conversion helpers.

Amounts are stored as integers in the smallest unit. Humans read and type
decimal strings: with 18 decimals, "1.5" is 1500000000000000000.

Functions:
- format_token_amount(amount, decimals) -> str: "1500000000000000000" -> "1.5"
- parse_token_amount(text, decimals) -> int: "1.5" -> 1500000000000000000
- bps_to_rating(bps) -> float: 450 -> 4.5
"""

from decimal import Decimal, InvalidOperation, Overflow, localcontext

from learnplatform.core.ledger import MAX_AMOUNT

DEFAULT_DECIMALS = 18


class TokenAmountError(ValueError):
    """Raised when a decimal token amount cannot be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Invalid token amount '{text}': {reason}")


def format_token_amount(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Format a smallest-unit amount as a decimal string.

    Always keeps at least one fractional digit ("100.0"), trailing zeros
    beyond that are dropped.
    """
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    frac_str = f"{frac:0{decimals}d}".rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def parse_token_amount(text: str | int, decimals: int = DEFAULT_DECIMALS) -> int:
    """Parse a decimal token amount into the smallest unit.

    Raises:
        TokenAmountError: If text is not a number, is negative, has more
            fractional digits than the token supports, or exceeds MAX_AMOUNT
    """
    raw = str(text).strip()
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise TokenAmountError(raw, "not a number")

    if not value.is_finite():
        raise TokenAmountError(raw, "not a finite number")
    if value < 0:
        raise TokenAmountError(raw, "must not be negative")

    try:
        with localcontext() as ctx:
            ctx.prec = 100
            scaled = value.scaleb(decimals)
    except Overflow:
        raise TokenAmountError(raw, "too large")
    if scaled > MAX_AMOUNT:
        raise TokenAmountError(raw, "too large")
    if scaled != scaled.to_integral_value():
        raise TokenAmountError(raw, f"more than {decimals} decimal places")
    return int(scaled)


def bps_to_rating(bps: int) -> float:
    """Convert basis points to a decimal rating (400 -> 4.0)."""
    return bps / 100
