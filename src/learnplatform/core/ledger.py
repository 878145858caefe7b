"""Token ledger.

Tracks a fungible balance per account in the smallest token unit.

Invariants:
- Balances are never negative.
- ``total_supply`` equals everything ever minted; only ``mint`` changes it.
- ``transfer`` either moves the full amount or changes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from learnplatform.core.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    UnauthorizedError,
)

logger = structlog.get_logger(__name__)

# Identity the platform uses when it mints rewards
PLATFORM_ISSUER = "@platform"

# Largest amount, balance or supply the ledger holds (uint256 range)
MAX_AMOUNT = 2**256 - 1


def _check_amount(amount: int) -> None:
    if amount <= 0 or amount > MAX_AMOUNT:
        raise InvalidAmountError(amount)


@dataclass
class Ledger:
    """Account balances plus the issuer allowed to mint."""

    issuer: str = PLATFORM_ISSUER
    balances: dict[str, int] = field(default_factory=dict)
    total_supply: int = 0

    def balance_of(self, account: str) -> int:
        """Get balance of an account (0 if it was never credited)."""
        return self.balances.get(account, 0)

    def credit(self, account: str, amount: int) -> None:
        """Increase an account balance, creating the account if needed."""
        _check_amount(amount)
        if self.balance_of(account) + amount > MAX_AMOUNT:
            raise InvalidAmountError(amount)
        self.balances[account] = self.balances.get(account, 0) + amount

    def debit(self, account: str, amount: int) -> None:
        """Decrease an account balance.

        Raises:
            InvalidAmountError: If amount <= 0
            InsufficientBalanceError: If the account holds less than amount
        """
        _check_amount(amount)
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalanceError(account, balance, amount)
        self.balances[account] = balance - amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move tokens between two accounts atomically."""
        _check_amount(amount)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(sender, balance, amount)

        # Both checks done; neither step below can fail
        self.debit(sender, amount)
        self.credit(recipient, amount)
        logger.debug("ledger_transfer", sender=sender, recipient=recipient, amount=amount)

    def mint(self, to: str, amount: int, caller: str) -> None:
        """Create new tokens for an account.

        Args:
            to: Receiving account
            amount: Amount to create (> 0)
            caller: Identity requesting the mint; must be the issuer

        Raises:
            UnauthorizedError: If caller is not the issuer
            InvalidAmountError: If amount <= 0 or supply would exceed MAX_AMOUNT
        """
        if caller != self.issuer:
            raise UnauthorizedError(caller, "mint tokens", field="caller")
        _check_amount(amount)
        if self.total_supply + amount > MAX_AMOUNT:
            raise InvalidAmountError(amount)
        self.credit(to, amount)
        self.total_supply += amount
        logger.debug("ledger_mint", to=to, amount=amount, total_supply=self.total_supply)

    def accounts(self) -> dict[str, int]:
        """Snapshot of all balances."""
        return dict(self.balances)

    def total_balance(self) -> int:
        return sum(self.balances.values())
