"""
Test suite for the allowance ledger

Covers lookups, additive increases, saturating decreases, spending against
finite and unlimited allowances, and overflow handling.
"""

import pytest

from token_ledger.allowances import AllowanceLedger, UNLIMITED_ALLOWANCE
from token_ledger.errors import (
    U64_MAX, ArithmeticOverflow, InsufficientAllowance, InvalidAmount
)


class TestAllowanceLookup:
    """Test reading allowances"""

    def test_unknown_spender_defaults_to_zero(self):
        """A spender that was never approved has a zero allowance"""
        ledger = AllowanceLedger()
        assert ledger.get("bob") == 0
        assert "bob" not in ledger
        assert len(ledger) == 0

    def test_entries_are_validated_on_construction(self):
        """Negative or oversized entries are rejected"""
        with pytest.raises(InvalidAmount):
            AllowanceLedger({"bob": -1})
        with pytest.raises(InvalidAmount):
            AllowanceLedger({"bob": U64_MAX + 1})

    def test_round_trip_through_dict(self):
        """to_dict/from_dict preserve every entry"""
        ledger = AllowanceLedger({"bob": 10, "carol": UNLIMITED_ALLOWANCE})
        assert AllowanceLedger.from_dict(ledger.to_dict()) == ledger


class TestIncrease:
    """Test increasing allowances"""

    def test_increase_inserts_missing_entry(self):
        ledger = AllowanceLedger()
        assert ledger.increase("bob", 40) == 40
        assert ledger.get("bob") == 40

    def test_increase_is_additive(self):
        """Increasing twice adds both amounts"""
        ledger = AllowanceLedger()
        ledger.increase("bob", 10)
        ledger.increase("bob", 5)
        assert ledger.get("bob") == 15

    def test_increase_past_u64_fails_without_change(self):
        """Overflow raises and leaves the entry untouched"""
        ledger = AllowanceLedger({"bob": U64_MAX - 10})
        with pytest.raises(ArithmeticOverflow):
            ledger.increase("bob", 11)
        assert ledger.get("bob") == U64_MAX - 10

    def test_increase_reaching_exactly_u64_is_unlimited(self):
        ledger = AllowanceLedger({"bob": U64_MAX - 10})
        assert ledger.increase("bob", 10) == UNLIMITED_ALLOWANCE

    def test_unlimited_stays_unlimited(self):
        """Adding to an unlimited allowance keeps it unlimited"""
        ledger = AllowanceLedger({"bob": UNLIMITED_ALLOWANCE})
        assert ledger.increase("bob", 1000) == UNLIMITED_ALLOWANCE

    def test_negative_delta_rejected(self):
        ledger = AllowanceLedger()
        with pytest.raises(InvalidAmount):
            ledger.increase("bob", -5)


class TestDecrease:
    """Test decreasing allowances"""

    def test_decrease_subtracts(self):
        ledger = AllowanceLedger({"bob": 40})
        assert ledger.decrease("bob", 15) == 25

    def test_decrease_saturates_at_zero(self):
        """Decreasing below zero clamps to zero instead of wrapping"""
        ledger = AllowanceLedger({"bob": 5})
        assert ledger.decrease("bob", 50) == 0
        assert ledger.get("bob") == 0

    def test_decrease_missing_entry_records_zero(self):
        """Decreasing a never-granted allowance creates a zero entry"""
        ledger = AllowanceLedger()
        assert ledger.decrease("bob", 7) == 0
        assert "bob" in ledger
        assert ledger.get("bob") == 0


class TestSpend:
    """Test spending allowances"""

    def test_spend_reduces_allowance(self):
        ledger = AllowanceLedger({"bob": 40})
        before = ledger.spend("bob", 25)
        assert before == 40
        assert ledger.get("bob") == 15

    def test_spend_entire_allowance(self):
        ledger = AllowanceLedger({"bob": 40})
        ledger.spend("bob", 40)
        assert ledger.get("bob") == 0

    def test_overspend_fails_without_change(self):
        """Spending more than allowed raises InsufficientAllowance"""
        ledger = AllowanceLedger({"bob": 10})
        with pytest.raises(InsufficientAllowance) as exc_info:
            ledger.spend("bob", 11)
        assert exc_info.value.spender == "bob"
        assert exc_info.value.have == 10
        assert exc_info.value.need == 11
        assert ledger.get("bob") == 10

    def test_unlimited_is_never_reduced(self):
        """Spending against the unlimited sentinel leaves it in place"""
        ledger = AllowanceLedger({"bob": UNLIMITED_ALLOWANCE})
        for _ in range(5):
            ledger.spend("bob", 10 ** 12)
        assert ledger.get("bob") == UNLIMITED_ALLOWANCE

    def test_discard_removes_entry(self):
        ledger = AllowanceLedger({"bob": 3})
        ledger.discard("bob")
        ledger.discard("nobody")
        assert "bob" not in ledger
