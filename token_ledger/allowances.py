"""
Allowance Ledger Module

Per-account table of spending allowances. Each entry says how much a spender
may move out of the owning account through a delegated transfer. The maximum
u64 value is reserved as "unlimited" and is never reduced by spending.
"""

from typing import Dict, Iterator, Optional, Tuple

from .errors import (
    U64_MAX, ArithmeticOverflow, InsufficientAllowance, require_amount
)


UNLIMITED_ALLOWANCE = U64_MAX


class AllowanceLedger:
    """Spender -> amount mapping embedded in an Account"""

    def __init__(self, entries: Optional[Dict[str, int]] = None):
        self._entries: Dict[str, int] = {}
        for spender, value in (entries or {}).items():
            self._entries[spender] = require_amount(value, "allowance")

    def get(self, spender: str) -> int:
        """Current allowance for spender, 0 if none was ever granted"""
        return self._entries.get(spender, 0)

    def set(self, spender: str, value: int) -> None:
        self._entries[spender] = require_amount(value, "allowance")

    def increase(self, spender: str, delta: int) -> int:
        """
        Add delta to the spender's allowance, inserting it if absent.

        An unlimited allowance stays unlimited. A finite result above u64
        raises ArithmeticOverflow and leaves the entry untouched.

        Returns:
            The new allowance
        """
        require_amount(delta, "addedValue")
        current = self.get(spender)
        if current == UNLIMITED_ALLOWANCE:
            self._entries[spender] = current
            return current

        updated = current + delta
        if updated > U64_MAX:
            raise ArithmeticOverflow(f"allowance of {spender}", current, delta)
        self._entries[spender] = updated
        return updated

    def decrease(self, spender: str, delta: int) -> int:
        """
        Subtract delta from the spender's allowance, saturating at zero.

        Decreasing an allowance that was never granted records a zero entry.

        Returns:
            The new allowance
        """
        require_amount(delta, "subtractedValue")
        if spender not in self._entries:
            self._entries[spender] = 0
            return 0

        updated = max(self._entries[spender] - delta, 0)
        self._entries[spender] = updated
        return updated

    def spend(self, spender: str, value: int) -> int:
        """
        Consume value from the spender's allowance.

        Unlimited allowances are left as they are. Raises
        InsufficientAllowance without touching the entry when the allowance
        does not cover value.

        Returns:
            The allowance before spending, so callers can restore it
        """
        require_amount(value)
        current = self.get(spender)
        if current == UNLIMITED_ALLOWANCE:
            return current
        if current < value:
            raise InsufficientAllowance(spender, current, value)
        self._entries[spender] = current - value
        return current

    def discard(self, spender: str) -> None:
        self._entries.pop(spender, None)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(list(self._entries.items()))

    def __contains__(self, spender: object) -> bool:
        return spender in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AllowanceLedger):
            return False
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"AllowanceLedger({self._entries!r})"

    def to_dict(self) -> Dict[str, int]:
        return dict(self._entries)

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> 'AllowanceLedger':
        return cls(data)
