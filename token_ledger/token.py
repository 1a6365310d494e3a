"""
Token Aggregate Module

The token record: immutable metadata, the account registry, and the transfer
and approval engines that mutate them. Every operation takes explicit
identities; resolving the current caller and persisting the record is the job
of TokenService.
"""

from typing import Any, Dict, Optional

from .accounts import Account, AccountRegistry
from .approvals import ApprovalEngine
from .errors import LedgerInvariantViolation, require_amount
from .notifications import NotificationSink
from .transfers import TransferEngine


class Token:
    """
    Fungible token with ERC20-style operations.

    balance_of and allowance answer for any identity; whether the identity
    must already hold an account is a boundary decision left to the caller.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int,
        total_supply: int = 0,
        notifier: Optional[NotificationSink] = None,
        accounts: Optional[AccountRegistry] = None
    ):
        self._name = name
        self._symbol = symbol
        self._decimals = require_amount(decimals, "decimals", upper=255)
        self.accounts = accounts if accounts is not None else AccountRegistry()
        self.transfers = TransferEngine(self.accounts, total_supply, notifier)
        self.approvals = ApprovalEngine(self.accounts, self.transfers, notifier)

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def decimals(self) -> int:
        """
        Number of decimals used for display only. With decimals == 2 a
        balance of 505 reads as 5.05; arithmetic never looks at it.
        """
        return self._decimals

    @property
    def total_supply(self) -> int:
        return self.transfers.total_supply

    def attach_notifier(self, notifier: Optional[NotificationSink]) -> None:
        self.transfers.notifier = notifier
        self.approvals.notifier = notifier

    def balance_of(self, owner: str) -> int:
        account = self.accounts.find(owner)
        return account.balance if account else 0

    def allowance(self, owner: str, spender: str) -> int:
        account = self.accounts.find(owner)
        return account.allowances.get(spender) if account else 0

    def open_account(self, owner: str) -> Account:
        """Explicitly create an account; duplicates raise AccountAlreadyExists"""
        return self.accounts.create(owner)

    def transfer(self, sender: str, to: str, value: int) -> None:
        self.transfers.transfer(sender, to, value)

    def approve(self, owner: str, spender: str, value: int) -> int:
        return self.approvals.approve(owner, spender, value)

    def transfer_from(self, spender: str, from_: str, to: str, value: int) -> None:
        """spender moves value from from_ to to using from_'s allowance"""
        self.approvals.transfer_with_allowance(from_, spender, to, value)

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> int:
        return self.approvals.increase_allowance(owner, spender, added_value)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> int:
        return self.approvals.decrease_allowance(owner, spender, subtracted_value)

    def mint(self, to: str, value: int) -> None:
        """Mint value to to, opening its account on first use"""
        require_amount(value)
        if to and not self.accounts.exists(to):
            self.accounts.create(to)
        self.transfers.mint(to, value)

    def burn(self, from_: str, value: int) -> None:
        """
        Burn value from from_, opening its account on first use. A burn that
        fails on balance still leaves the opened account behind in memory;
        TokenService discards it by not persisting the failed operation.
        """
        require_amount(value)
        if from_ and not self.accounts.exists(from_):
            self.accounts.create(from_)
        self.transfers.burn(from_, value)

    def check_invariants(self) -> None:
        """Raise LedgerInvariantViolation unless balances sum to the supply"""
        held = self.accounts.total_balance()
        if held != self.total_supply:
            raise LedgerInvariantViolation(held, self.total_supply)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "symbol": self._symbol,
            "decimals": self._decimals,
            "total_supply": self.total_supply,
            "accounts": self.accounts.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], notifier: Optional[NotificationSink] = None) -> 'Token':
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data["decimals"],
            total_supply=data["total_supply"],
            notifier=notifier,
            accounts=AccountRegistry.from_dict(data.get("accounts") or []),
        )

    def __repr__(self) -> str:
        return (
            f"Token(name={self._name!r}, symbol={self._symbol!r}, "
            f"decimals={self._decimals}, total_supply={self.total_supply}, "
            f"accounts={len(self.accounts)})"
        )
