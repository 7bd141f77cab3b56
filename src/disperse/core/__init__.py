"""
Core distributor components.

This module contains the batch model, the error taxonomy, the result
record and the distributor that ties them together.
"""

from disperse.core.errors import (
    DisperseError,
    ErrorKind,
    InvalidAmount,
    InvalidRecipient,
    LengthMismatch,
    ReentrancyRejected,
    TransferFailed,
)
from disperse.core.batch import Batch, DistributionMode, Transfer
from disperse.core.result import DistributionResult
from disperse.core.distributor import BatchDistributor

__all__ = [
    "Batch",
    "BatchDistributor",
    "DisperseError",
    "DistributionMode",
    "DistributionResult",
    "ErrorKind",
    "InvalidAmount",
    "InvalidRecipient",
    "LengthMismatch",
    "ReentrancyRejected",
    "Transfer",
    "TransferFailed",
]
