"""
In-memory token ledger.

A reference Ledger with balances, allowances and receive hooks. All state is
journaled, so a rejected distribution also rolls back token movements.
"""

from typing import Dict, Optional

import structlog

from disperse.ledger.interface import InsufficientAllowance, Ledger, ReceiveHook
from disperse.state.book import AccountBook
from disperse.state.journal import Journal

logger = structlog.get_logger(__name__)


class InMemoryLedger(Ledger):
    """
    Fungible token ledger kept in process memory.

    Attributes:
        symbol: Token symbol
        call_count: Number of transfer_from calls served (authorization checks)
    """

    def __init__(self, symbol: str = "TOKEN", journal: Optional[Journal] = None):
        self.symbol = symbol
        self._book = AccountBook(journal)
        self._allowances: Dict[str, Dict[str, int]] = {}
        self.call_count = 0

    @property
    def journal(self) -> Journal:
        return self._book.journal

    # Setup helpers

    def mint(self, account: str, amount: int) -> None:
        """Create tokens at an account."""
        if amount < 0:
            raise ValueError(f"Cannot mint negative amount: {amount}")
        self._book.credit(account, amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set the amount a spender may move on the owner's behalf."""
        if amount < 0:
            raise ValueError(f"Cannot approve negative amount: {amount}")
        spenders = self._allowances.setdefault(owner, {})
        previous = spenders.get(spender)

        def undo() -> None:
            if previous is None:
                spenders.pop(spender, None)
            else:
                spenders[spender] = previous

        spenders[spender] = amount
        self.journal.record(undo)

    def register_hook(self, account: str, hook: Optional[ReceiveHook]) -> None:
        """Register the code that runs when an account receives tokens."""
        self._book.register_hook(account, hook)

    # Queries

    def allowance(self, owner: str, spender: str) -> int:
        """Get the remaining allowance of a spender over an owner."""
        return self._allowances.get(owner, {}).get(spender, 0)

    def allowances(self) -> Dict[str, Dict[str, int]]:
        """Get a copy of all non-zero allowances."""
        result = {}
        for owner, spenders in self._allowances.items():
            live = {spender: value for spender, value in spenders.items() if value}
            if live:
                result[owner] = live
        return result

    def balances(self) -> Dict[str, int]:
        """Get all non-zero token balances."""
        return self._book.balances()

    # Ledger interface

    async def balance_of(self, account: str) -> int:
        return self._book.balance(account)

    async def transfer(self, sender: str, to: str, amount: int) -> bool:
        await self._book.move(sender, to, amount)
        logger.debug("token_transfer", symbol=self.symbol, sender=sender, to=to, amount=amount)
        return True

    async def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        self.call_count += 1
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowance(owner, spender, current, amount)

        with self.journal.atomic():
            self.approve(owner, spender, current - amount)
            await self._book.move(owner, to, amount)

        logger.debug(
            "token_transfer_from",
            symbol=self.symbol,
            spender=spender,
            owner=owner,
            to=to,
            amount=amount,
        )
        return True
