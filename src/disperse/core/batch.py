"""
Batch model.

Pairs a recipient list with an amount list and validates the entries
a distribution is about to transfer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence

from disperse.config import DisperseConfig, get_config
from disperse.core.errors import (
    InvalidAmount,
    InvalidRecipient,
    LengthMismatch,
    TransferFailed,
)


class DistributionMode(str, Enum):
    """How value reaches the recipients."""
    NATIVE = "native"                 # Attached native value, pushed per recipient
    TOKEN_POOLED = "token_pooled"     # Pull total into custody, then push
    TOKEN_DIRECT = "token_direct"     # Payer to recipient, no custody


@dataclass(frozen=True)
class Transfer:
    """A single (recipient, amount) entry of a batch."""
    index: int
    recipient: str
    amount: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "recipient": self.recipient,
            "amount": self.amount,
        }


@dataclass
class Batch:
    """
    A recipient list and an amount list with positional correspondence.

    Duplicated recipients are legal; each occurrence is its own transfer.

    Attributes:
        recipients: Ordered recipient addresses
        amounts: Ordered amounts in base units
        config: Configuration supplying the null address and amount width
    """

    recipients: List[str]
    amounts: List[int]
    config: DisperseConfig = field(default_factory=get_config, repr=False)

    @classmethod
    def from_lists(
        cls,
        recipients: Sequence[str],
        amounts: Sequence[int],
        config: Optional[DisperseConfig] = None,
    ) -> "Batch":
        """
        Create a batch, rejecting mismatched list lengths.

        Raises:
            LengthMismatch: If the lists differ in length
        """
        recipients = list(recipients)
        amounts = list(amounts)
        if len(recipients) != len(amounts):
            raise LengthMismatch(len(recipients), len(amounts))
        return cls(
            recipients=recipients,
            amounts=amounts,
            config=config or get_config(),
        )

    @property
    def size(self) -> int:
        """Get the number of entries in this batch."""
        return len(self.recipients)

    @property
    def is_empty(self) -> bool:
        """Check if batch has no entries."""
        return self.size == 0

    def __iter__(self) -> Iterator[Transfer]:
        for index, (recipient, amount) in enumerate(zip(self.recipients, self.amounts)):
            yield Transfer(index=index, recipient=recipient, amount=amount)

    def check_amount(self, index: int, amount) -> None:
        """
        Check that an amount fits the unsigned amount type.

        Raises:
            InvalidAmount: If the amount is not an integer, negative or too wide
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmount(
                f"Amount at index {index} must be an integer, got {type(amount).__name__}",
                index=index,
            )
        if amount < 0:
            raise InvalidAmount(f"Amount at index {index} is negative: {amount}", index=index)
        if amount > self.config.max_amount:
            raise InvalidAmount(
                f"Amount at index {index} exceeds {self.config.amount_bits}-bit width",
                index=index,
            )

    def check_entry(self, entry: Transfer) -> None:
        """
        Validate one entry.

        Raises:
            InvalidRecipient: If the recipient is the null identity
            InvalidAmount: If the amount is zero or malformed
        """
        if self.config.is_null_address(entry.recipient):
            raise InvalidRecipient(
                f"Recipient at index {entry.index} is the null address",
                index=entry.index,
            )
        self.check_amount(entry.index, entry.amount)
        if entry.amount == 0:
            raise InvalidAmount(f"Amount at index {entry.index} is zero", index=entry.index)

    def validate(self) -> None:
        """
        Validate every entry in index order before anything moves.

        The first invalid entry decides the error.
        """
        for entry in self:
            self.check_entry(entry)

    def total(self) -> int:
        """
        Get the aggregate of all amounts.

        Raises:
            InvalidAmount: If an amount is malformed
            TransferFailed: If the sum overflows the amount width
        """
        total = 0
        for index, amount in enumerate(self.amounts):
            self.check_amount(index, amount)
            total += amount
            if total > self.config.max_amount:
                raise TransferFailed(
                    f"Aggregate total overflows {self.config.amount_bits}-bit width "
                    f"at index {index}",
                    index=index,
                )
        return total

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "size": self.size,
            "transfers": [entry.to_dict() for entry in self],
        }
