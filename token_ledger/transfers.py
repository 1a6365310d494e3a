"""
Transfer Engine Module

Moves value between two ledger slots. Ordinary transfers, mints and burns all
funnel through move_value; the null identity stands for the supply side, so a
mint is a move out of the null party and a burn is a move into it.

Every guard runs before the first mutation: a failing move raises and leaves
balances and the total supply exactly as they were.
"""

from typing import Optional

from .accounts import NULL_ACCOUNT, AccountRegistry
from .errors import (
    U64_MAX, ArithmeticOverflow, InsufficientBalance, InvalidReceiver,
    InvalidSender, require_amount
)
from .logging_config import get_logger, log_action
from .notifications import NotificationSink


def describe_party(identity: str, null_label: str) -> str:
    return identity if identity != NULL_ACCOUNT else null_label


class TransferEngine:
    """
    Owns the total supply and applies value moves to the account registry
    """

    def __init__(
        self,
        registry: AccountRegistry,
        total_supply: int = 0,
        notifier: Optional[NotificationSink] = None
    ):
        self.registry = registry
        self.total_supply = require_amount(total_supply, "totalSupply")
        self.notifier = notifier
        self.logger = get_logger("token_ledger.transfers")

    def move_value(self, from_: str, to: str, value: int) -> None:
        """
        Move value from one slot to another.

        An empty from_ mints (the supply grows); an empty to burns (the supply
        shrinks). Sender checks run before receiver checks.

        Raises:
            InvalidAmount: value is not a u64
            InvalidSender: both parties are the null identity
            AccountNotFound: a non-null party has no account
            InsufficientBalance: the sender cannot cover value
            ArithmeticOverflow: the supply or the receiver balance would exceed u64
        """
        require_amount(value)
        if from_ == NULL_ACCOUNT and to == NULL_ACCOUNT:
            raise InvalidSender(from_)

        sender = None
        if from_ == NULL_ACCOUNT:
            if self.total_supply + value > U64_MAX:
                raise ArithmeticOverflow("total supply", self.total_supply, value)
        else:
            sender = self.registry.get(from_)
            if sender.balance < value:
                raise InsufficientBalance(from_, sender.balance, value)

        receiver = None
        if to != NULL_ACCOUNT:
            receiver = self.registry.get(to)
            # A self-transfer debits before it credits, so it never grows the balance
            credited = receiver.balance - (value if receiver is sender else 0)
            if credited + value > U64_MAX:
                raise ArithmeticOverflow(f"balance of {to}", credited, value)

        if sender is None:
            self.total_supply += value
        else:
            sender.balance -= value

        if receiver is None:
            self.total_supply -= value
        else:
            receiver.balance += value

        message = (
            f"Transfer of {value} from {describe_party(from_, '(mint)')} "
            f"to {describe_party(to, '(burn)')}"
        )
        log_action(
            self.logger, "debug", message, operation="move_value",
            extra={"from": from_, "to": to, "value": value,
                   "total_supply": self.total_supply}
        )
        if self.notifier is not None:
            self.notifier.notify(True, message)

    def transfer(self, from_: str, to: str, value: int) -> None:
        """Ordinary transfer between two real accounts"""
        if from_ == NULL_ACCOUNT:
            raise InvalidSender(from_)
        if to == NULL_ACCOUNT:
            raise InvalidReceiver(to)
        self.move_value(from_, to, value)

    def mint(self, account: str, value: int) -> None:
        """Create value tokens and credit them to account"""
        if account == NULL_ACCOUNT:
            raise InvalidReceiver(account)
        self.move_value(NULL_ACCOUNT, account, value)

    def burn(self, account: str, value: int) -> None:
        """Destroy value tokens held by account"""
        if account == NULL_ACCOUNT:
            raise InvalidSender(account)
        self.move_value(account, NULL_ACCOUNT, value)
