"""
Account Management Module

Holds the accounts of a token: one balance and one allowance table per owner
identity. The registry is keyed by owner, so an identity can hold at most one
account, and the empty identity (the null party used for mint and burn) can
never hold one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .allowances import AllowanceLedger
from .errors import (
    AccountAlreadyExists, AccountNotFound, CorruptTokenRecord, InvalidAccount,
    require_amount
)
from .logging_config import get_logger


# Reserved identity for the null party: source of mints, sink of burns
NULL_ACCOUNT = ""


@dataclass
class Account:
    """
    Token holder with a balance and the allowances it has granted
    """
    owner: str
    balance: int = 0
    allowances: AllowanceLedger = field(default_factory=AllowanceLedger)

    def __post_init__(self):
        if self.owner == NULL_ACCOUNT:
            raise InvalidAccount(self.owner)
        require_amount(self.balance, "balance")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "balance": self.balance,
            "allowances": self.allowances.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            owner=data["owner"],
            balance=data.get("balance", 0),
            allowances=AllowanceLedger.from_dict(data.get("allowances") or {}),
        )


class AccountRegistry:
    """
    Owns the accounts of a single token, indexed by owner identity
    """

    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self.logger = get_logger("token_ledger.accounts")

    def find(self, owner: str) -> Optional[Account]:
        """Account held by owner, or None"""
        return self._accounts.get(owner)

    def exists(self, owner: str) -> bool:
        return owner in self._accounts

    def get(self, owner: str) -> Account:
        """Account held by owner; raises AccountNotFound if there is none"""
        account = self._accounts.get(owner)
        if account is None:
            raise AccountNotFound(owner)
        return account

    def create(self, owner: str) -> Account:
        """
        Open a new account with a zero balance and no allowances.

        Raises:
            InvalidAccount: owner is the null identity
            AccountAlreadyExists: owner already holds an account
        """
        if owner == NULL_ACCOUNT:
            raise InvalidAccount(owner)
        if owner in self._accounts:
            raise AccountAlreadyExists(owner)

        account = Account(owner=owner)
        self._accounts[owner] = account
        self.logger.debug(f"Account for {owner} successfully created")
        return account

    def ensure(self, owner: str) -> Tuple[Account, bool]:
        """Find or create the owner's account; the flag is True when created"""
        account = self.find(owner)
        if account is not None:
            return account, False
        return self.create(owner), True

    def owners(self) -> List[str]:
        return list(self._accounts)

    def total_balance(self) -> int:
        """Sum of all balances, which must equal the token's total supply"""
        return sum(account.balance for account in self._accounts.values())

    def __contains__(self, owner: object) -> bool:
        return owner in self._accounts

    def __iter__(self) -> Iterator[Account]:
        return iter(list(self._accounts.values()))

    def __len__(self) -> int:
        return len(self._accounts)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [account.to_dict() for account in self._accounts.values()]

    @classmethod
    def from_dict(cls, data: List[Dict[str, Any]]) -> 'AccountRegistry':
        registry = cls()
        for item in data:
            account = Account.from_dict(item)
            if account.owner in registry._accounts:
                raise CorruptTokenRecord(f"duplicate account for {account.owner}")
            registry._accounts[account.owner] = account
        return registry
