"""
Test suite for state management.

Tests the journal's commit/rollback behavior, the account books built on it,
and world snapshots.
"""

import json

import pytest

from disperse.ledger.interface import InsufficientAllowance, InsufficientBalance, RecipientRejected
from disperse.ledger.memory import InMemoryLedger
from disperse.ledger.native import NativeAccounts
from disperse.state.journal import Journal
from disperse.state.world import World

from tests.conftest import ALICE, BOB, CAROL, DISTRIBUTOR, PAYER


# ============================================================================
# Test Journal
# ============================================================================

class TestJournal:
    """Tests for atomic blocks and savepoints."""

    def test_commit_keeps_changes(self):
        """Test a successful block keeps its mutations."""
        native = NativeAccounts()

        with native.journal.atomic():
            native.mint(ALICE, 5)

        assert native.balance_of(ALICE) == 5
        assert not native.journal.in_transaction

    def test_rollback_discards_changes(self):
        """Test a failing block undoes every mutation it made."""
        native = NativeAccounts()
        native.mint(ALICE, 5)

        with pytest.raises(RuntimeError):
            with native.journal.atomic():
                native.mint(ALICE, 10)
                native.mint(BOB, 3)
                raise RuntimeError("boom")

        assert native.balance_of(ALICE) == 5
        assert native.balance_of(BOB) == 0
        assert native.balances() == {ALICE: 5}

    def test_inner_savepoint_rollback(self):
        """Test an inner failure only unwinds the inner block."""
        native = NativeAccounts()

        with native.journal.atomic():
            native.mint(ALICE, 1)
            with pytest.raises(ValueError):
                with native.journal.atomic():
                    native.mint(BOB, 2)
                    raise ValueError("inner")
            assert native.journal.depth == 1

        assert native.balance_of(ALICE) == 1
        assert native.balance_of(BOB) == 0

    def test_outer_rollback_undoes_committed_inner(self):
        """Test a committed inner block is still undone by its outer block."""
        native = NativeAccounts()

        with pytest.raises(RuntimeError):
            with native.journal.atomic():
                with native.journal.atomic():
                    native.mint(BOB, 2)
                raise RuntimeError("outer")

        assert native.balance_of(BOB) == 0

    def test_record_outside_block_is_final(self):
        """Test mutations outside a block are not journaled."""
        journal = Journal()
        calls = []

        journal.record(lambda: calls.append("undo"))

        assert calls == []
        assert journal.depth == 0


# ============================================================================
# Test Account Books
# ============================================================================

class TestNativeAccounts:
    """Tests for native push transfers."""

    @pytest.mark.asyncio
    async def test_push(self):
        """Test a push moves value."""
        native = NativeAccounts()
        native.mint(ALICE, 10)

        await native.push(ALICE, BOB, 4)

        assert native.balance_of(ALICE) == 6
        assert native.balance_of(BOB) == 4

    @pytest.mark.asyncio
    async def test_push_insufficient_balance(self):
        """Test pushing more than the balance raises."""
        native = NativeAccounts()
        native.mint(ALICE, 1)

        with pytest.raises(InsufficientBalance) as exc_info:
            await native.push(ALICE, BOB, 2)

        assert exc_info.value.error_code == "insufficient_balance"
        assert native.balance_of(ALICE) == 1

    @pytest.mark.asyncio
    async def test_rejecting_hook_undoes_push(self):
        """Test a hook that raises rolls back the push and its own effects."""
        native = NativeAccounts()
        native.mint(ALICE, 10)

        async def reject(sender, amount):
            native.mint(CAROL, 99)
            raise RuntimeError("no thanks")

        native.register_hook(BOB, reject)

        with pytest.raises(RecipientRejected) as exc_info:
            await native.push(ALICE, BOB, 4)

        assert exc_info.value.recipient == BOB
        assert native.balances() == {ALICE: 10}

    @pytest.mark.asyncio
    async def test_hook_receives_sender_and_amount(self):
        """Test the hook is told who paid and how much."""
        native = NativeAccounts()
        native.mint(ALICE, 10)
        seen = []

        async def record(sender, amount):
            seen.append((sender, amount))

        native.register_hook(BOB, record)
        await native.push(ALICE, BOB, 3)
        native.register_hook(BOB, None)
        await native.push(ALICE, BOB, 1)

        assert seen == [(ALICE, 3)]

    def test_mint_negative(self):
        """Test minting a negative amount is refused."""
        with pytest.raises(ValueError):
            NativeAccounts().mint(ALICE, -1)


class TestInMemoryLedger:
    """Tests for the reference token ledger."""

    @pytest.mark.asyncio
    async def test_transfer_from_consumes_allowance(self):
        """Test transfer_from moves tokens and lowers the allowance."""
        ledger = InMemoryLedger("TKN")
        ledger.mint(PAYER, 100)
        ledger.approve(PAYER, DISTRIBUTOR, 60)

        assert await ledger.transfer_from(DISTRIBUTOR, PAYER, ALICE, 40) is True

        assert await ledger.balance_of(ALICE) == 40
        assert ledger.allowance(PAYER, DISTRIBUTOR) == 20
        assert ledger.call_count == 1

    @pytest.mark.asyncio
    async def test_transfer_from_without_allowance(self):
        """Test transfer_from beyond the allowance raises."""
        ledger = InMemoryLedger("TKN")
        ledger.mint(PAYER, 100)

        with pytest.raises(InsufficientAllowance) as exc_info:
            await ledger.transfer_from(DISTRIBUTOR, PAYER, ALICE, 1)

        assert exc_info.value.allowance == 0

    @pytest.mark.asyncio
    async def test_failed_transfer_from_keeps_allowance(self):
        """Test a failed move restores the allowance it consumed."""
        journal = Journal()
        ledger = InMemoryLedger("TKN", journal)
        ledger.approve(PAYER, DISTRIBUTOR, 50)

        with journal.atomic():
            with pytest.raises(InsufficientBalance):
                await ledger.transfer_from(DISTRIBUTOR, PAYER, ALICE, 10)

        assert ledger.allowance(PAYER, DISTRIBUTOR) == 50

    def test_allowances_snapshot(self):
        """Test zero allowances are left out of snapshots."""
        ledger = InMemoryLedger("TKN")
        ledger.approve(PAYER, DISTRIBUTOR, 5)
        ledger.approve(ALICE, DISTRIBUTOR, 0)

        assert ledger.allowances() == {PAYER: {DISTRIBUTOR: 5}}


# ============================================================================
# Test World Snapshots
# ============================================================================

class TestWorld:
    """Tests for world snapshot conversion."""

    def test_from_dict(self):
        """Test building a world from a snapshot."""
        world = World.from_dict({
            "native": {PAYER: 100},
            "tokens": {
                "TKN": {
                    "balances": {PAYER: 50},
                    "allowances": {PAYER: {DISTRIBUTOR: 50}},
                },
            },
        })

        assert world.native.balance_of(PAYER) == 100
        assert world.tokens["TKN"].allowance(PAYER, DISTRIBUTOR) == 50
        assert world.tokens["TKN"].journal is world.journal

    def test_round_trip_through_file(self, tmp_path):
        """Test dump then load reproduces the snapshot."""
        snapshot = {
            "native": {PAYER: 2 ** 200},
            "tokens": {"TKN": {"balances": {ALICE: 7}, "allowances": {}}},
        }
        path = tmp_path / "state.json"

        World.from_dict(snapshot).dump(path)

        assert World.load(path).to_dict() == snapshot
        assert json.loads(path.read_text())["native"][PAYER] == 2 ** 200

    @pytest.mark.parametrize("snapshot", [
        [],
        {"native": {PAYER: -1}},
        {"native": {PAYER: "10"}},
        {"tokens": {"TKN": []}},
        {"tokens": {"TKN": {"allowances": {PAYER: {DISTRIBUTOR: 1.5}}}}},
    ])
    def test_malformed_snapshots(self, snapshot):
        """Test malformed snapshots are refused."""
        with pytest.raises(ValueError):
            World.from_dict(snapshot)
