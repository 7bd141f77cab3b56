"""
Journal - all-or-nothing commit for in-memory state.

Account books record an undo entry for every mutation. A failed atomic
block replays those entries in reverse, so the state it touched looks as
if the block never ran. Blocks nest as savepoints: an inner failure only
unwinds the inner block.
"""

import asyncio
from contextlib import contextmanager
from typing import Callable, Iterator, List

import structlog

logger = structlog.get_logger(__name__)

UndoFn = Callable[[], None]


class Journal:
    """
    Undo log shared by every account book of one execution environment.

    Savepoints form a stack, so atomic blocks from concurrent tasks must not
    interleave. Every writer over one journal holds ``lock`` around its
    top-level block.
    """

    def __init__(self):
        self._undo: List[UndoFn] = []
        self._savepoints: List[int] = []
        self.lock = asyncio.Lock()

    @property
    def depth(self) -> int:
        """Number of open atomic blocks."""
        return len(self._savepoints)

    @property
    def in_transaction(self) -> bool:
        """Check if an atomic block is open."""
        return bool(self._savepoints)

    def record(self, undo: UndoFn) -> None:
        """
        Register the inverse of a mutation that was just applied.

        Outside an atomic block mutations are final and nothing is recorded.
        """
        if self._savepoints:
            self._undo.append(undo)

    @contextmanager
    def atomic(self) -> Iterator["Journal"]:
        """
        Open an atomic block.

        On exception every mutation recorded inside the block is undone and
        the exception is re-raised. Closing the outermost block commits.
        """
        self._savepoints.append(len(self._undo))
        try:
            yield self
        except BaseException:
            mark = self._savepoints.pop()
            self._rollback_to(mark)
            raise
        else:
            self._savepoints.pop()
            if not self._savepoints:
                committed = len(self._undo)
                self._undo.clear()
                logger.debug("journal_committed", mutations=committed)

    def _rollback_to(self, mark: int) -> None:
        undone = len(self._undo) - mark
        while len(self._undo) > mark:
            self._undo.pop()()
        logger.debug("journal_rolled_back", mutations=undone, depth=self.depth)
