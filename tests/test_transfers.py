"""
Test suite for the transfer engine

Covers ordinary transfers, mint and burn through the null party, the order
in which sender and receiver are validated, overflow guards, and the
guarantee that a failed move changes nothing.
"""

import pytest

from token_ledger.accounts import NULL_ACCOUNT, AccountRegistry
from token_ledger.errors import (
    U64_MAX, AccountNotFound, ArithmeticOverflow, InsufficientBalance,
    InvalidAmount, InvalidReceiver, InvalidSender
)
from token_ledger.notifications import RecordingNotificationSink
from token_ledger.transfers import TransferEngine


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
def engine(notifier):
    registry = AccountRegistry()
    registry.create("alice").balance = 100
    registry.create("bob")
    return TransferEngine(registry, total_supply=100, notifier=notifier)


def balances(engine):
    return {account.owner: account.balance for account in engine.registry}


class TestMoveValue:
    """Test the core value move"""

    def test_transfer_between_accounts(self, engine, notifier):
        engine.move_value("alice", "bob", 30)
        assert balances(engine) == {"alice": 70, "bob": 30}
        assert engine.total_supply == 100
        assert notifier.last.success
        assert notifier.last.message == "Transfer of 30 from alice to bob"

    def test_mint_from_null_party(self, engine, notifier):
        """An empty sender grows the supply"""
        engine.move_value(NULL_ACCOUNT, "bob", 50)
        assert engine.registry.get("bob").balance == 50
        assert engine.total_supply == 150
        assert notifier.last.message == "Transfer of 50 from (mint) to bob"

    def test_burn_into_null_party(self, engine, notifier):
        """An empty receiver shrinks the supply"""
        engine.move_value("alice", NULL_ACCOUNT, 40)
        assert engine.registry.get("alice").balance == 60
        assert engine.total_supply == 60
        assert notifier.last.message == "Transfer of 40 from alice to (burn)"

    def test_both_parties_null_rejected(self, engine, notifier):
        with pytest.raises(InvalidSender):
            engine.move_value(NULL_ACCOUNT, NULL_ACCOUNT, 1)
        assert engine.total_supply == 100
        assert len(notifier) == 0

    def test_insufficient_balance_changes_nothing(self, engine, notifier):
        """A failing debit aborts before any mutation"""
        with pytest.raises(InsufficientBalance) as exc_info:
            engine.move_value("alice", "bob", 101)
        assert exc_info.value.who == "alice"
        assert exc_info.value.have == 100
        assert exc_info.value.need == 101
        assert str(exc_info.value) == "Insufficient Balance (100 < 101) for alice"
        assert balances(engine) == {"alice": 100, "bob": 0}
        assert engine.total_supply == 100
        assert len(notifier) == 0

    def test_sender_checked_before_receiver(self, engine):
        """With both parties unknown, the sender is reported"""
        with pytest.raises(AccountNotFound) as exc_info:
            engine.move_value("mallory", "trent", 1)
        assert exc_info.value.owner == "mallory"

    def test_missing_receiver_changes_nothing(self, engine):
        with pytest.raises(AccountNotFound) as exc_info:
            engine.move_value("alice", "carol", 10)
        assert exc_info.value.owner == "carol"
        assert engine.registry.get("alice").balance == 100

    def test_supply_overflow_rejected(self, engine):
        """Minting past u64 fails instead of wrapping"""
        with pytest.raises(ArithmeticOverflow):
            engine.move_value(NULL_ACCOUNT, "bob", U64_MAX)
        assert engine.total_supply == 100
        assert engine.registry.get("bob").balance == 0

    def test_self_transfer_keeps_balance(self, engine):
        engine.move_value("alice", "alice", 100)
        assert engine.registry.get("alice").balance == 100

    def test_invalid_amounts_rejected(self, engine):
        for bad in (-1, U64_MAX + 1, 1.5, "10", True):
            with pytest.raises(InvalidAmount):
                engine.move_value("alice", "bob", bad)
        assert balances(engine) == {"alice": 100, "bob": 0}

    def test_zero_value_move(self, engine, notifier):
        engine.move_value("bob", "alice", 0)
        assert balances(engine) == {"alice": 100, "bob": 0}
        assert notifier.last.message == "Transfer of 0 from bob to alice"


class TestTransferMintBurn:
    """Test the guarded entry points"""

    def test_transfer_requires_sender(self, engine):
        with pytest.raises(InvalidSender):
            engine.transfer(NULL_ACCOUNT, "bob", 1)

    def test_transfer_requires_receiver(self, engine):
        with pytest.raises(InvalidReceiver):
            engine.transfer("alice", NULL_ACCOUNT, 1)
        assert engine.total_supply == 100

    def test_transfer_checks_sender_first(self, engine):
        with pytest.raises(InvalidSender):
            engine.transfer(NULL_ACCOUNT, NULL_ACCOUNT, 1)

    def test_mint_requires_receiver(self, engine):
        with pytest.raises(InvalidReceiver):
            engine.mint(NULL_ACCOUNT, 10)
        assert engine.total_supply == 100

    def test_burn_requires_sender(self, engine):
        with pytest.raises(InvalidSender):
            engine.burn(NULL_ACCOUNT, 10)
        assert engine.total_supply == 100

    def test_mint_then_burn(self, engine):
        engine.mint("bob", 25)
        engine.burn("bob", 5)
        assert engine.registry.get("bob").balance == 20
        assert engine.total_supply == 120
        assert engine.registry.total_balance() == engine.total_supply

    def test_burn_more_than_balance(self, engine):
        with pytest.raises(InsufficientBalance):
            engine.burn("alice", 101)
        assert engine.total_supply == 100
        assert engine.registry.get("alice").balance == 100

    def test_engine_without_notifier(self):
        registry = AccountRegistry()
        registry.create("alice")
        engine = TransferEngine(registry)
        engine.mint("alice", 5)
        assert engine.total_supply == 5
