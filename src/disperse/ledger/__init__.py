"""
Ledger collaborators.

Provides the abstract token ledger interface plus the native account book
and an in-memory token ledger.
"""

from disperse.ledger.interface import (
    InsufficientAllowance,
    InsufficientBalance,
    Ledger,
    LedgerError,
    ReceiveHook,
    RecipientRejected,
)
from disperse.ledger.native import NativeAccounts
from disperse.ledger.memory import InMemoryLedger

__all__ = [
    "InMemoryLedger",
    "InsufficientAllowance",
    "InsufficientBalance",
    "Ledger",
    "LedgerError",
    "NativeAccounts",
    "ReceiveHook",
    "RecipientRejected",
]
