"""
Abstract interface for the token ledger collaborator.

Defines the contract that every token ledger the distributor talks to must
implement. The distributor never implements a ledger itself.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional


# Receive hook: called with (sender, amount) after value lands at an account.
# Raising from the hook rejects the transfer.
ReceiveHook = Callable[[str, int], Awaitable[None]]


class Ledger(ABC):
    """
    Abstract interface for fungible token access.

    The invoking account is passed explicitly: `sender` for transfer and
    `spender` for transfer_from.
    """

    symbol: str = "TOKEN"

    @abstractmethod
    async def transfer(self, sender: str, to: str, amount: int) -> bool:
        """
        Move tokens from the invoking account.

        Args:
            sender: Account whose tokens are moved
            to: Receiving account
            amount: Amount in base units

        Returns:
            True if the transfer happened

        Raises:
            LedgerError: If the ledger refuses the transfer
        """
        pass

    @abstractmethod
    async def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """
        Move tokens on behalf of an owner who authorized the spender.

        Args:
            spender: Invoking account, consumes the owner's allowance
            owner: Account whose tokens are moved
            to: Receiving account
            amount: Amount in base units

        Returns:
            True if the transfer happened

        Raises:
            LedgerError: If allowance or balance is insufficient
        """
        pass

    @abstractmethod
    async def balance_of(self, account: str) -> int:
        """
        Get the live balance of an account.

        Args:
            account: Account to query

        Returns:
            Balance in base units
        """
        pass


class LedgerError(Exception):
    """Raised when a ledger refuses an operation."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class InsufficientBalance(LedgerError):
    """Raised when an account cannot cover a debit."""

    def __init__(self, account: str, balance: int, amount: int):
        super().__init__(
            f"Balance of {account} is {balance}, cannot debit {amount}",
            error_code="insufficient_balance",
        )
        self.account = account
        self.balance = balance
        self.amount = amount


class InsufficientAllowance(LedgerError):
    """Raised when a spender is not authorized for the requested amount."""

    def __init__(self, owner: str, spender: str, allowance: int, amount: int):
        super().__init__(
            f"Allowance of {spender} over {owner} is {allowance}, cannot spend {amount}",
            error_code="insufficient_allowance",
        )
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.amount = amount


class RecipientRejected(LedgerError):
    """Raised when a receive hook rejects an incoming transfer."""

    def __init__(self, message: str, recipient: str):
        super().__init__(message, error_code="recipient_rejected")
        self.recipient = recipient
