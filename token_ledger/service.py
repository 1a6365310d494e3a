"""
Token Service Module

Maps each external request onto one Token operation. For every call the
service loads the token record from the ledger store, fills omitted
identities with the current caller, checks that the parties involved hold
accounts, runs the operation and, for mutating operations, persists the
record once at the end.

Every failure aborts: nothing is persisted, a single failure notification is
sent, and the error propagates to the caller. Every success produces exactly
one success notification, sent only once the record has been committed.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .codec import decode_token, encode_token
from .errors import (
    AccountNotFound, InvalidAccount, TokenAlreadyExists, TokenNotFound
)
from .identity import CallerIdentity
from .logging_config import get_logger, log_action
from .notifications import (
    LogNotificationSink, NotificationSink, RecordingNotificationSink
)
from .storage import LedgerStore
from .token import Token


DEFAULT_TABLE = "ERC20Table"
DEFAULT_KEY = "ALL"


class TokenService:
    """
    Operation surface of the token ledger
    """

    def __init__(
        self,
        store: LedgerStore,
        identity: CallerIdentity,
        notifier: Optional[NotificationSink] = None,
        table: str = DEFAULT_TABLE,
        key: str = DEFAULT_KEY
    ):
        self.store = store
        self.identity = identity
        self.notifier = notifier if notifier is not None else LogNotificationSink()
        self.table = table
        self.key = key
        self.logger = get_logger("token_ledger.service")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _caller(self, identity: Optional[str] = None) -> str:
        if identity:
            return identity
        return self.identity.current_caller()

    def _load(self, notifier: Optional[NotificationSink] = None) -> Token:
        blob = self.store.get(self.table, self.key)
        if not blob:
            raise TokenNotFound()
        return decode_token(blob, notifier=notifier)

    def _save(self, token: Token) -> None:
        self.store.set(self.table, self.key, encode_token(token))

    def _require_holders(self, token: Token, *owners: str) -> None:
        """Boundary guard: every non-empty party must already hold an account"""
        for owner in owners:
            if owner and not token.accounts.exists(owner):
                raise AccountNotFound(owner)

    def _require_accounts(self, token: Token, *owners: str) -> None:
        """Query guard: the null party never holds an account, so it cannot be asked about"""
        for owner in owners:
            if not owner:
                raise InvalidAccount(owner)
        self._require_holders(token, *owners)

    def _fail(self, operation: str, caller: str, error: Exception) -> None:
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        self.notifier.notify(False, message)
        log_action(
            self.logger, "warning", f"{operation} failed: {message}",
            caller=caller, operation=operation,
            extra={"error": type(error).__name__}
        )

    @contextmanager
    def _query(self, operation: str, caller: str) -> Iterator[Token]:
        try:
            yield self._load()
        except Exception as e:
            self._fail(operation, caller, e)
            raise

    @contextmanager
    def _transaction(self, operation: str, caller: str, **details: Any) -> Iterator[Token]:
        """
        Load, run, check and persist. Any failure skips persistence, and the
        success messages of the operation are held back until the commit.
        """
        pending = RecordingNotificationSink()
        try:
            with self.store.atomic():
                token = self._load(notifier=pending)
                yield token
                token.check_invariants()
                self._save(token)
        except Exception as e:
            self._fail(operation, caller, e)
            raise

        pending.replay(self.notifier)
        log_action(
            self.logger, "info", f"{operation} committed",
            caller=caller, operation=operation, resource=f"token:{self.key}",
            extra=details or None
        )

    def _answer(self, message: str) -> None:
        self.notifier.notify(True, message)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_token(self, name: str, symbol: str, decimals: int, total_supply: int = 0) -> Token:
        """
        Create the token. Only the first call succeeds.

        A non-zero initial supply is minted to the creating caller, so the
        balances add up to the supply from the very first state.
        """
        caller = self._caller()
        try:
            with self.store.atomic():
                if self.store.get(self.table, self.key):
                    raise TokenAlreadyExists()
                token = Token(name, symbol, decimals)
                if total_supply:
                    token.mint(caller, total_supply)
                token.check_invariants()
                self._save(token)
        except Exception as e:
            self._fail("create_token", caller, e)
            raise

        log_action(
            self.logger, "info", f"Token {symbol} created",
            caller=caller, operation="create_token", resource=f"token:{self.key}",
            extra={"name": name, "symbol": symbol, "decimals": decimals,
                   "total_supply": total_supply}
        )
        self._answer("Token created successfully")
        token.attach_notifier(self.notifier)
        return token

    def is_created(self) -> bool:
        return bool(self.store.get(self.table, self.key))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def name(self) -> str:
        with self._query("name", self._caller()) as token:
            self._answer(f"Name is {token.name}")
            return token.name

    def symbol(self) -> str:
        with self._query("symbol", self._caller()) as token:
            self._answer(f"Symbol is {token.symbol}")
            return token.symbol

    def decimals(self) -> int:
        with self._query("decimals", self._caller()) as token:
            self._answer(f"Decimals is {token.decimals}")
            return token.decimals

    def total_supply(self) -> int:
        with self._query("total_supply", self._caller()) as token:
            self._answer(f"Total Supply is {token.total_supply}")
            return token.total_supply

    def balance_of(self, owner: Optional[str] = None) -> int:
        owner = self._caller(owner)
        with self._query("balance_of", owner) as token:
            self._require_accounts(token, owner)
            balance = token.balance_of(owner)
            self._answer(f"Balance for {owner} is {balance}")
            return balance

    def allowance(self, spender: str, owner: Optional[str] = None) -> int:
        owner = self._caller(owner)
        with self._query("allowance", owner) as token:
            self._require_accounts(token, owner, spender)
            value = token.allowance(owner, spender)
            self._answer(f"Allowance for {spender} on {owner} account is {value}")
            return value

    def snapshot(self) -> Dict[str, Any]:
        """Decoded token record, for inspection"""
        with self._query("snapshot", self._caller()) as token:
            self._answer(f"Token {token.symbol} has {len(token.accounts)} accounts")
            return token.to_dict()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def open_account(self, owner: Optional[str] = None) -> str:
        owner = self._caller(owner)
        with self._transaction("open_account", owner) as token:
            token.open_account(owner)
        self._answer(f"Account for {owner} successfully created")
        return owner

    def transfer(self, to: str, value: int) -> None:
        sender = self._caller()
        with self._transaction("transfer", sender, to=to, value=value) as token:
            self._require_holders(token, sender, to)
            token.transfer(sender, to, value)

    def approve(self, spender: str, value: int) -> int:
        owner = self._caller()
        with self._transaction("approve", owner, spender=spender, value=value) as token:
            self._require_holders(token, owner, spender)
            allowance = token.approve(owner, spender, value)
        return allowance

    def transfer_from(self, to: str, value: int, from_: Optional[str] = None) -> None:
        spender = self._caller()
        from_ = self._caller(from_)
        with self._transaction("transfer_from", spender, owner=from_, to=to, value=value) as token:
            self._require_holders(token, from_, to)
            token.transfer_from(spender, from_, to, value)

    def increase_allowance(self, spender: str, added_value: int) -> int:
        owner = self._caller()
        with self._transaction("increase_allowance", owner, spender=spender, value=added_value) as token:
            self._require_holders(token, owner, spender)
            allowance = token.increase_allowance(owner, spender, added_value)
        return allowance

    def decrease_allowance(self, spender: str, subtracted_value: int) -> int:
        owner = self._caller()
        with self._transaction("decrease_allowance", owner, spender=spender, value=subtracted_value) as token:
            self._require_holders(token, owner, spender)
            allowance = token.decrease_allowance(owner, spender, subtracted_value)
        return allowance

    def mint(self, value: int, to: Optional[str] = None) -> None:
        to = self._caller(to)
        with self._transaction("mint", self._caller(), to=to, value=value) as token:
            token.mint(to, value)

    def burn(self, value: int, from_: Optional[str] = None) -> None:
        from_ = self._caller(from_)
        with self._transaction("burn", self._caller(), owner=from_, value=value) as token:
            token.burn(from_, value)
