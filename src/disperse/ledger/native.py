"""
Native asset account book.

Holds the execution environment's built-in unit of value. Transfers are
push transfers: the recipient's receive hook runs before the push returns,
so recipient code can reject the value or call back into the caller.
"""

from typing import Dict, Optional

import structlog

from disperse.ledger.interface import ReceiveHook
from disperse.state.book import AccountBook
from disperse.state.journal import Journal

logger = structlog.get_logger(__name__)


class NativeAccounts:
    """
    Native asset balances of one execution environment.

    Usage:
        ```python
        native = NativeAccounts(journal)
        native.mint("alice", 100)
        await native.push("alice", "bob", 40)
        ```
    """

    def __init__(self, journal: Optional[Journal] = None):
        self._book = AccountBook(journal)

    @property
    def journal(self) -> Journal:
        return self._book.journal

    def balance_of(self, account: str) -> int:
        """Get the live native balance of an account."""
        return self._book.balance(account)

    def balances(self) -> Dict[str, int]:
        """Get all non-zero native balances."""
        return self._book.balances()

    def mint(self, account: str, amount: int) -> None:
        """Create native value at an account (environment setup)."""
        if amount < 0:
            raise ValueError(f"Cannot mint negative amount: {amount}")
        self._book.credit(account, amount)

    def register_hook(self, account: str, hook: Optional[ReceiveHook]) -> None:
        """Register the code that runs when an account receives native value."""
        self._book.register_hook(account, hook)

    async def push(self, sender: str, to: str, amount: int) -> None:
        """
        Push native value to an account.

        Args:
            sender: Account the value leaves
            to: Receiving account
            amount: Amount in base units

        Raises:
            InsufficientBalance: If the sender cannot cover the amount
            RecipientRejected: If the recipient's receive hook raised
        """
        await self._book.move(sender, to, amount)
        logger.debug("native_push", sender=sender, to=to, amount=amount)
