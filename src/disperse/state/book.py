"""
Journaled balance storage shared by the native and token account books.
"""

from typing import Dict, Optional

import structlog

from disperse.core.errors import DisperseError
from disperse.ledger.interface import InsufficientBalance, ReceiveHook, RecipientRejected
from disperse.state.journal import Journal

logger = structlog.get_logger(__name__)


class AccountBook:
    """
    Balances keyed by account, with receive hooks.

    Every mutation records its inverse in the journal so that an enclosing
    atomic block can discard it.
    """

    def __init__(self, journal: Optional[Journal] = None):
        self.journal = journal or Journal()
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    def balance(self, account: str) -> int:
        """Get the current balance of an account."""
        return self._balances.get(account, 0)

    def balances(self) -> Dict[str, int]:
        """Get a copy of all non-zero balances."""
        return {account: value for account, value in self._balances.items() if value}

    def set_balance(self, account: str, value: int) -> None:
        """Set a balance, recording the previous value for rollback."""
        previous = self._balances.get(account)

        def undo() -> None:
            if previous is None:
                self._balances.pop(account, None)
            else:
                self._balances[account] = previous

        self._balances[account] = value
        self.journal.record(undo)

    def credit(self, account: str, amount: int) -> None:
        self.set_balance(account, self.balance(account) + amount)

    def debit(self, account: str, amount: int) -> None:
        """
        Remove value from an account.

        Raises:
            InsufficientBalance: If the account cannot cover the amount
        """
        current = self.balance(account)
        if current < amount:
            raise InsufficientBalance(account, current, amount)
        self.set_balance(account, current - amount)

    def register_hook(self, account: str, hook: Optional[ReceiveHook]) -> None:
        """Register (or clear, with None) the receive hook of an account."""
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    async def move(self, sender: str, to: str, amount: int) -> None:
        """
        Move value and run the recipient's receive hook.

        The move and everything the hook does form one savepoint; a hook
        that raises undoes the move.

        Raises:
            InsufficientBalance: If the sender cannot cover the amount
            RecipientRejected: If the receive hook raised
            DisperseError: Propagated unchanged from the receive hook
        """
        with self.journal.atomic():
            self.debit(sender, amount)
            self.credit(to, amount)

            hook = self._hooks.get(to)
            if hook is None:
                return
            try:
                await hook(sender, amount)
            except DisperseError:
                raise
            except Exception as e:
                logger.debug("receive_hook_rejected", recipient=to, error=str(e))
                raise RecipientRejected(
                    f"Recipient {to} rejected transfer of {amount}: {e}",
                    recipient=to,
                ) from e
