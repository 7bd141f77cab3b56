"""
Disperse

Atomic batch distribution of native value and fungible tokens.
One payer, many recipients: every transfer of a batch lands, or none do.
"""

__version__ = "0.1.0"

from disperse.core.batch import Batch, DistributionMode, Transfer
from disperse.core.distributor import BatchDistributor
from disperse.core.errors import (
    DisperseError,
    ErrorKind,
    InvalidAmount,
    InvalidRecipient,
    LengthMismatch,
    ReentrancyRejected,
    TransferFailed,
)
from disperse.core.result import DistributionResult
from disperse.ledger.interface import Ledger
from disperse.state.world import World

__all__ = [
    "Batch",
    "BatchDistributor",
    "DisperseError",
    "DistributionMode",
    "DistributionResult",
    "ErrorKind",
    "InvalidAmount",
    "InvalidRecipient",
    "Ledger",
    "LengthMismatch",
    "ReentrancyRejected",
    "Transfer",
    "TransferFailed",
    "World",
]
