"""
tests/unit/test_ledger.py - Ledger balances, allowances and atomic rollback.
"""

import threading

import pytest

from chains.ledger import Ledger
from core.constants import UINT256_MAX
from core.exceptions import ArithmeticOverflow, InsufficientAllowance, InsufficientBalance

ASSET = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def ledger():
    ledger = Ledger()
    ledger.mint("alice", ASSET, 100)
    return ledger


class TestTransfers:
    def test_transfer(self, ledger):
        ledger.transfer("alice", "bob", ASSET, 40)
        assert ledger.balance_of("alice", ASSET) == 60
        assert ledger.balance_of("bob", ASSET) == 40

    def test_insufficient_balance(self, ledger):
        with pytest.raises(InsufficientBalance) as exc:
            ledger.transfer("alice", "bob", ASSET, 101)
        assert exc.value.details["available"] == 100
        assert ledger.balance_of("alice", ASSET) == 100

    def test_negative_amount(self, ledger):
        with pytest.raises(ValueError):
            ledger.transfer("alice", "bob", ASSET, -1)

    def test_mint_overflow(self, ledger):
        with pytest.raises(ArithmeticOverflow):
            ledger.mint("alice", ASSET, UINT256_MAX)


class TestAllowances:
    def test_approve_sets_not_adds(self, ledger):
        ledger.approve("alice", "venue", ASSET, 10)
        ledger.approve("alice", "venue", ASSET, 3)
        assert ledger.allowance("alice", "venue", ASSET) == 3

    def test_transfer_from_decrements(self, ledger):
        ledger.approve("alice", "venue", ASSET, 50)
        ledger.transfer_from("venue", "alice", "pool", ASSET, 30)
        assert ledger.allowance("alice", "venue", ASSET) == 20
        assert ledger.balance_of("pool", ASSET) == 30

    def test_transfer_from_without_allowance(self, ledger):
        with pytest.raises(InsufficientAllowance):
            ledger.transfer_from("venue", "alice", "pool", ASSET, 1)

    def test_approve_zero_clears(self, ledger):
        ledger.approve("alice", "venue", ASSET, 5)
        ledger.approve("alice", "venue", ASSET, 0)
        assert ledger.allowance("alice", "venue", ASSET) == 0


class TestAtomic:
    def test_commit(self, ledger):
        with ledger.atomic():
            ledger.transfer("alice", "bob", ASSET, 10)
        assert ledger.balance_of("bob", ASSET) == 10

    def test_rollback_restores_balances_and_allowances(self, ledger):
        ledger.approve("alice", "venue", ASSET, 7)
        before = ledger.snapshot()

        with pytest.raises(RuntimeError):
            with ledger.atomic():
                ledger.transfer("alice", "bob", ASSET, 60)
                ledger.approve("alice", "venue", ASSET, 0)
                raise RuntimeError("boom")

        assert ledger.snapshot() == before
        assert ledger.allowance("alice", "venue", ASSET) == 7

    def test_nested_inner_rollback_only(self, ledger):
        with ledger.atomic():
            ledger.transfer("alice", "bob", ASSET, 10)
            with pytest.raises(RuntimeError):
                with ledger.atomic():
                    ledger.transfer("alice", "bob", ASSET, 20)
                    raise RuntimeError("inner")
        assert ledger.balance_of("bob", ASSET) == 10

    def test_in_atomic_flag(self, ledger):
        assert not ledger.in_atomic
        with ledger.atomic():
            assert ledger.in_atomic
        assert not ledger.in_atomic

    def test_brackets_serialize(self, ledger):
        """A second thread cannot mutate while a bracket is open."""
        entered = threading.Event()
        release = threading.Event()
        observed = []

        def holder():
            with ledger.atomic():
                entered.set()
                release.wait(timeout=5)
                observed.append(ledger.balance_of("alice", ASSET))

        t = threading.Thread(target=holder)
        t.start()
        entered.wait(timeout=5)

        writer = threading.Thread(target=lambda: ledger.transfer("alice", "bob", ASSET, 1))
        writer.start()
        writer.join(timeout=0.2)
        assert writer.is_alive()

        release.set()
        t.join(timeout=5)
        writer.join(timeout=5)

        assert observed == [100]
        assert ledger.balance_of("alice", ASSET) == 99
