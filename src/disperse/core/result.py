"""
Distribution result model.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from disperse.core.batch import DistributionMode, Transfer


@dataclass
class DistributionResult:
    """
    Outcome of a committed distribution.

    Only successful calls produce a result; rejected calls raise a
    DisperseError and leave nothing behind.

    Attributes:
        mode: How value was moved
        payer: Account the value came from
        asset: Token symbol, or None for the native asset
        transfers: Entries in execution order
        total: Sum of all transferred amounts
        refund: Native value swept back to the payer
    """

    mode: DistributionMode
    payer: str
    asset: Optional[str] = None
    transfers: List[Transfer] = field(default_factory=list)
    total: int = 0
    refund: int = 0

    @property
    def recipient_count(self) -> int:
        """Get the number of transfers executed."""
        return len(self.transfers)

    def summary(self) -> str:
        """Human-readable summary of the distribution."""
        lines = [
            f"=== Disperse {self.mode.value} distribution: SUCCESS ===",
            f"Payer: {self.payer}",
            f"Asset: {self.asset or 'native'}",
            f"Recipients: {self.recipient_count}",
            f"Total amount: {self.total}",
        ]
        if self.mode == DistributionMode.NATIVE:
            lines.append(f"Refund: {self.refund}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode.value,
            "payer": self.payer,
            "asset": self.asset,
            "recipient_count": self.recipient_count,
            "total": self.total,
            "refund": self.refund,
            "transfers": [t.to_dict() for t in self.transfers],
        }
