"""
Token Errors Module

Exception hierarchy for every failure the token ledger can report. All errors
derive from TokenError, itself a ValueError, so callers that already treat
ValueError as a rejected business operation keep working.
"""

from typing import Optional


U64_MAX = 2 ** 64 - 1


class TokenError(ValueError):
    """Base class for token ledger failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TokenNotFound(TokenError):
    """Raised when an operation runs before the token has been created"""

    def __init__(self, message: str = "Coin does not exists. Create it first"):
        super().__init__(message)


class TokenAlreadyExists(TokenError):
    """Raised on a second createToken call"""

    def __init__(self, message: str = "Token already exists"):
        super().__init__(message)


class AccountNotFound(TokenError):
    """Raised when an identity has no account on this token"""

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Account for {owner} does not exist")


class AccountAlreadyExists(TokenError):
    """Raised when creating an account for an owner that already holds one"""

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Account for {owner} already exists")


class InvalidAccount(TokenError):
    """Raised when the null identity is used where a real account is required"""

    def __init__(self, owner: str = ""):
        self.owner = owner
        super().__init__("Invalid Account: the empty identity cannot hold an account")


def _with_party(message: str, party: str, preposition: str) -> str:
    if party:
        return f"{message} {preposition} {party}"
    return message


class InvalidSender(TokenError):
    """Failure with the token sender. Used in transfers and burns."""

    def __init__(self, sender: str = ""):
        self.sender = sender
        super().__init__(_with_party("Invalid Sender", sender, "from"))


class InvalidReceiver(TokenError):
    """Failure with the token receiver. Used in transfers and mints."""

    def __init__(self, receiver: str = ""):
        self.receiver = receiver
        super().__init__(_with_party("Invalid Receiver", receiver, "to"))


class InvalidApprover(TokenError):
    """Failure with the owner granting an approval"""

    def __init__(self, approver: str = ""):
        self.approver = approver
        super().__init__(_with_party("Invalid Approver", approver, "for"))


class InvalidSpender(TokenError):
    """Failure with the spender being approved"""

    def __init__(self, spender: str = ""):
        self.spender = spender
        super().__init__(_with_party("Invalid Spender", spender, "for"))


class InsufficientBalance(TokenError):
    """
    Raised when a sender's balance does not cover a transfer or burn.

    Attributes:
        who: Identity whose tokens are being moved
        have: Current balance
        need: Amount required
    """

    def __init__(self, who: str, have: int, need: int):
        self.who = who
        self.have = have
        self.need = need
        super().__init__(_with_party(f"Insufficient Balance ({have} < {need})", who, "for"))


class InsufficientAllowance(TokenError):
    """
    Raised when a spender's allowance does not cover a delegated transfer.

    Attributes:
        spender: Identity spending on behalf of the owner
        have: Current allowance
        need: Amount required
    """

    def __init__(self, spender: str, have: int, need: int):
        self.spender = spender
        self.have = have
        self.need = need
        super().__init__(_with_party(f"Insufficient Allowance ({have} < {need})", spender, "for"))


class InvalidAmount(TokenError):
    """Raised for amounts that are not integers in the u64 range"""

    def __init__(self, value: object, field_name: str = "value", upper: int = U64_MAX):
        self.value = value
        self.field_name = field_name
        super().__init__(f"Invalid {field_name} {value!r}: expected an integer in [0, {upper}]")


class ArithmeticOverflow(TokenError):
    """Raised when a balance, allowance or the total supply would exceed u64"""

    def __init__(self, what: str, current: int, delta: int):
        self.what = what
        self.current = current
        self.delta = delta
        super().__init__(f"Overflow on {what}: {current} + {delta} exceeds {U64_MAX}")


class LedgerInvariantViolation(TokenError):
    """Raised when balances no longer sum to the total supply"""

    def __init__(self, total_balance: int, total_supply: int):
        self.total_balance = total_balance
        self.total_supply = total_supply
        super().__init__(
            f"Ledger out of balance: accounts hold {total_balance}, total supply is {total_supply}"
        )


class CorruptTokenRecord(TokenError):
    """Raised when a stored token record cannot be decoded"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Corrupt token record: {reason}")


class UnsupportedSchemaVersion(TokenError):
    """Raised when a stored token record uses an unknown schema version"""

    def __init__(self, version: Optional[object]):
        self.version = version
        super().__init__(f"Unsupported token record schema version: {version!r}")


def require_amount(value: object, field_name: str = "value", upper: int = U64_MAX) -> int:
    """Validate that value is an int in [0, upper] and return it"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(value, field_name, upper)
    if value < 0 or value > upper:
        raise InvalidAmount(value, field_name, upper)
    return value
