"""
Batch distributor.

Moves value from one payer to many recipients as a single atomic unit:
either every transfer of the batch lands or the journal unwinds all of them.
"""

import asyncio
from contextlib import asynccontextmanager, nullcontext
from contextvars import ContextVar
from typing import AsyncIterator, Awaitable, Optional, Sequence, Tuple

import structlog

from disperse.config import DisperseConfig, get_config
from disperse.core.batch import Batch, DistributionMode
from disperse.core.errors import (
    DisperseError,
    InvalidAmount,
    ReentrancyRejected,
    TransferFailed,
)
from disperse.core.result import DistributionResult
from disperse.ledger.interface import Ledger
from disperse.ledger.native import NativeAccounts
from disperse.state.journal import Journal

logger = structlog.get_logger(__name__)


class _Call:
    """An operation in flight, as seen from the contexts it hands control to."""

    __slots__ = ("distributor", "journal", "task", "live")

    def __init__(self, distributor: "BatchDistributor", journal: Journal):
        self.distributor = distributor
        self.journal = journal
        self.task = asyncio.current_task()
        self.live = True


# Operations in flight above the current context. Tasks spawned by recipient
# code copy this chain; a call drops out of it once it is no longer live.
_in_flight: ContextVar[Tuple[_Call, ...]] = ContextVar("disperse_in_flight", default=())


class BatchDistributor:
    """
    Validates recipient/amount batches and performs the transfers.

    The distributor keeps no state between calls. It holds custody of value
    only inside a call (attached native value, or the pooled token total)
    and always hands it back out before the call returns.

    Usage:
        ```python
        world = World()
        distributor = BatchDistributor(world.native, world.journal)
        result = await distributor.distribute_native(
            "alice", ["bob", "carol"], [10, 20], value=35,
        )
        ```
    """

    def __init__(
        self,
        native: NativeAccounts,
        journal: Optional[Journal] = None,
        address: Optional[str] = None,
        config: Optional[DisperseConfig] = None,
    ):
        """
        Initialize the distributor.

        Args:
            native: Native asset account book
            journal: Journal providing atomic commit (defaults to the native book's)
            address: Custody account of the distributor
            config: Disperse configuration
        """
        self.config = config or get_config()
        self.native = native
        self.journal = journal or native.journal
        self.address = address or self.config.distributor_address

    def _reject(self, mode: DistributionMode, payer: str, reason: str) -> None:
        logger.warning("reentrancy_rejected", mode=mode.value, payer=payer, reason=reason)
        raise ReentrancyRejected(f"{mode.value} distribution {reason}")

    @asynccontextmanager
    async def _operation(self, mode: DistributionMode, payer: str, size: int) -> AsyncIterator[None]:
        """
        Guard against re-entry and run the body as one atomic block.

        Independent callers over the same journal wait on its lock. A call
        made by recipient code of a live operation is nested: it is refused
        for the same distributor, and for any distributor on the same journal
        when it comes from a spawned task, since that task cannot get the lock
        before the operation it interrupts has finished.
        """
        chain = tuple(call for call in _in_flight.get() if call.live)
        if any(call.distributor is self for call in chain):
            self._reject(mode, payer, "entered while another is in flight")

        holder = next((call for call in chain if call.journal is self.journal), None)
        if holder is not None and holder.task is not asyncio.current_task():
            self._reject(mode, payer, "entered from a task spawned by an operation in flight")

        call = _Call(self, self.journal)
        token = _in_flight.set(chain + (call,))
        try:
            async with self.journal.lock if holder is None else nullcontext():
                logger.info("distribution_started", mode=mode.value, payer=payer, size=size)
                try:
                    with self.journal.atomic():
                        yield
                except DisperseError as e:
                    logger.warning(
                        "distribution_rejected",
                        mode=mode.value,
                        payer=payer,
                        kind=e.kind.value,
                        index=e.index,
                        error=str(e),
                    )
                    raise
        finally:
            call.live = False
            _in_flight.reset(token)

    async def _settle(self, call: Awaitable, description: str, index: Optional[int] = None) -> None:
        """
        Await a collaborator call and turn any failure into TransferFailed.

        A DisperseError raised from recipient code passes through unchanged.
        An explicit False return is a failure; None counts as success.
        """
        try:
            outcome = await call
        except DisperseError:
            raise
        except Exception as e:
            raise TransferFailed(f"{description} failed: {e}", index=index) from e

        if outcome is False:
            raise TransferFailed(f"{description} reported failure", index=index)

    async def _balance(self, ledger: Ledger, account: str, index: Optional[int] = None) -> int:
        """Query a token balance, turning any ledger failure into TransferFailed."""
        try:
            return await ledger.balance_of(account)
        except DisperseError:
            raise
        except Exception as e:
            raise TransferFailed(
                f"Balance query of {ledger.symbol} for {account} failed: {e}",
                index=index,
            ) from e

    def _check_value(self, value) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidAmount(f"Attached value must be an integer, got {type(value).__name__}")
        if value < 0 or value > self.config.max_amount:
            raise InvalidAmount(f"Attached value out of range: {value}")

    async def distribute_native(
        self,
        payer: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
        value: int,
    ) -> DistributionResult:
        """
        Distribute attached native value.

        The attached value is escrowed from the payer first. Each entry is
        pushed in index order, then whatever is left in custody is swept
        back to the payer.

        Args:
            payer: Account attaching the value
            recipients: Recipient addresses
            amounts: Amounts in base units, one per recipient
            value: Attached value, should cover sum(amounts)

        Returns:
            DistributionResult with the refunded excess

        Raises:
            LengthMismatch, InvalidRecipient, InvalidAmount, TransferFailed,
            ReentrancyRejected
        """
        mode = DistributionMode.NATIVE
        async with self._operation(mode, payer, len(recipients)):
            batch = Batch.from_lists(recipients, amounts, self.config)
            batch.validate()
            self._check_value(value)

            if value:
                await self._settle(
                    self.native.push(payer, self.address, value),
                    f"Escrow of attached value {value} from {payer}",
                )

            transfers = []
            for entry in batch:
                await self._settle(
                    self.native.push(self.address, entry.recipient, entry.amount),
                    f"Native transfer of {entry.amount} to {entry.recipient}",
                    index=entry.index,
                )
                transfers.append(entry)

            refund = self.native.balance_of(self.address)
            if refund:
                await self._settle(
                    self.native.push(self.address, payer, refund),
                    f"Refund of {refund} to {payer}",
                )

            result = DistributionResult(
                mode=mode,
                payer=payer,
                transfers=transfers,
                total=sum(entry.amount for entry in transfers),
                refund=refund,
            )

        logger.info(
            "distribution_completed",
            mode=mode.value,
            payer=payer,
            total=result.total,
            refund=refund,
        )
        return result

    async def distribute_token_pooled(
        self,
        ledger: Ledger,
        payer: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
    ) -> DistributionResult:
        """
        Distribute tokens through the distributor's custody.

        The aggregate is pulled from the payer with one transfer_from, so
        the payer's authorization is checked once, then pushed out entry by
        entry.

        Args:
            ledger: Token ledger
            payer: Account that authorized the distributor
            recipients: Recipient addresses
            amounts: Amounts in base units, one per recipient

        Returns:
            DistributionResult

        Raises:
            LengthMismatch, InvalidRecipient, InvalidAmount, TransferFailed,
            ReentrancyRejected
        """
        mode = DistributionMode.TOKEN_POOLED
        async with self._operation(mode, payer, len(recipients)):
            batch = Batch.from_lists(recipients, amounts, self.config)
            batch.validate()
            total = batch.total()

            custody_before = await self._balance(ledger, self.address)
            if total:
                await self._settle(
                    ledger.transfer_from(self.address, payer, self.address, total),
                    f"Pull of {total} {ledger.symbol} from {payer}",
                )
            pulled = await self._balance(ledger, self.address) - custody_before
            if pulled != total:
                raise TransferFailed(
                    f"Pull of {total} {ledger.symbol} credited {pulled} to custody"
                )

            transfers = []
            for entry in batch:
                held = await self._balance(ledger, self.address, entry.index)
                await self._settle(
                    ledger.transfer(self.address, entry.recipient, entry.amount),
                    f"Transfer of {entry.amount} {ledger.symbol} to {entry.recipient}",
                    index=entry.index,
                )
                released = held - await self._balance(ledger, self.address, entry.index)
                if released != entry.amount:
                    raise TransferFailed(
                        f"Transfer of {entry.amount} {ledger.symbol} to {entry.recipient} "
                        f"moved {released} out of custody",
                        index=entry.index,
                    )
                transfers.append(entry)

            custody_after = await self._balance(ledger, self.address)
            if custody_after != custody_before:
                raise TransferFailed(
                    f"Custody of {ledger.symbol} changed from {custody_before} to {custody_after}"
                )

            result = DistributionResult(
                mode=mode,
                payer=payer,
                asset=ledger.symbol,
                transfers=transfers,
                total=total,
            )

        logger.info(
            "distribution_completed",
            mode=mode.value,
            payer=payer,
            asset=ledger.symbol,
            total=total,
        )
        return result

    async def distribute_token_direct(
        self,
        ledger: Ledger,
        payer: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
    ) -> DistributionResult:
        """
        Distribute tokens straight from the payer to each recipient.

        The distributor never holds custody; the ledger checks the payer's
        authorization on every transfer.

        Args:
            ledger: Token ledger
            payer: Account that authorized the distributor
            recipients: Recipient addresses
            amounts: Amounts in base units, one per recipient

        Returns:
            DistributionResult

        Raises:
            LengthMismatch, InvalidRecipient, InvalidAmount, TransferFailed,
            ReentrancyRejected
        """
        mode = DistributionMode.TOKEN_DIRECT
        async with self._operation(mode, payer, len(recipients)):
            batch = Batch.from_lists(recipients, amounts, self.config)
            batch.validate()

            transfers = []
            for entry in batch:
                before = await self._balance(ledger, entry.recipient, entry.index)
                await self._settle(
                    ledger.transfer_from(self.address, payer, entry.recipient, entry.amount),
                    f"Transfer of {entry.amount} {ledger.symbol} from {payer} to {entry.recipient}",
                    index=entry.index,
                )
                if entry.recipient != payer:
                    received = await self._balance(ledger, entry.recipient, entry.index) - before
                    if received != entry.amount:
                        raise TransferFailed(
                            f"Transfer of {entry.amount} {ledger.symbol} to {entry.recipient} "
                            f"credited {received}",
                            index=entry.index,
                        )
                transfers.append(entry)

            result = DistributionResult(
                mode=mode,
                payer=payer,
                asset=ledger.symbol,
                transfers=transfers,
                total=sum(entry.amount for entry in transfers),
            )

        logger.info(
            "distribution_completed",
            mode=mode.value,
            payer=payer,
            asset=ledger.symbol,
            total=result.total,
        )
        return result
