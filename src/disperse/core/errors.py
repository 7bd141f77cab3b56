"""
Distribution errors.

Every rejection raised by the distributor carries an ErrorKind so callers
can branch on the cause instead of matching messages.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Cause of a rejected distribution."""
    LENGTH_MISMATCH = "length_mismatch"
    INVALID_RECIPIENT = "invalid_recipient"
    INVALID_AMOUNT = "invalid_amount"
    TRANSFER_FAILED = "transfer_failed"
    REENTRANCY_REJECTED = "reentrancy_rejected"


class DisperseError(Exception):
    """Base class for all distribution rejections."""

    kind: ErrorKind

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": str(self),
            "index": self.index,
        }


class LengthMismatch(DisperseError):
    """Recipient and amount lists differ in length."""
    kind = ErrorKind.LENGTH_MISMATCH

    def __init__(self, recipients: int, amounts: int):
        super().__init__(
            f"Got {recipients} recipients but {amounts} amounts"
        )
        self.recipients = recipients
        self.amounts = amounts


class InvalidRecipient(DisperseError):
    """A null recipient was found in the batch."""
    kind = ErrorKind.INVALID_RECIPIENT


class InvalidAmount(DisperseError):
    """A zero, negative, non-integer or oversized amount was found."""
    kind = ErrorKind.INVALID_AMOUNT


class TransferFailed(DisperseError):
    """An underlying native push or ledger call failed."""
    kind = ErrorKind.TRANSFER_FAILED


class ReentrancyRejected(DisperseError):
    """A distributor operation was entered while another was in flight."""
    kind = ErrorKind.REENTRANCY_REJECTED
