"""
Approval Engine Module

Grants and adjusts allowances, and performs delegated transfers that spend
them. Approval is additive: approving a spender again adds to what it was
already allowed rather than replacing it.
"""

from typing import Optional

from .accounts import NULL_ACCOUNT, AccountRegistry
from .errors import InvalidApprover, InvalidSpender, TokenError
from .logging_config import get_logger, log_action
from .notifications import NotificationSink
from .transfers import TransferEngine


class ApprovalEngine:
    """
    Allowance bookkeeping on top of the account registry
    """

    def __init__(
        self,
        registry: AccountRegistry,
        transfers: TransferEngine,
        notifier: Optional[NotificationSink] = None
    ):
        self.registry = registry
        self.transfers = transfers
        self.notifier = notifier
        self.logger = get_logger("token_ledger.approvals")

    def _check_parties(self, owner: str, spender: str) -> None:
        if owner == NULL_ACCOUNT:
            raise InvalidApprover(owner)
        if spender == NULL_ACCOUNT:
            raise InvalidSpender(spender)

    def _notify(self, message: str) -> None:
        if self.notifier is not None:
            self.notifier.notify(True, message)

    def approve(self, owner: str, spender: str, value: int, emit_notification: bool = True) -> int:
        """
        Add value to the allowance owner grants spender.

        Args:
            owner: Identity whose tokens may be spent
            spender: Identity allowed to spend them
            value: Amount added to the current allowance
            emit_notification: Send an approval notification on success

        Returns:
            The allowance after the approval
        """
        self._check_parties(owner, spender)
        account = self.registry.get(owner)
        allowance = account.allowances.increase(spender, value)

        message = f"Approval of {value} from {owner} to {spender}"
        log_action(
            self.logger, "debug", message, caller=owner, operation="approve",
            extra={"spender": spender, "value": value, "allowance": allowance}
        )
        if emit_notification:
            self._notify(message)
        return allowance

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> int:
        self._check_parties(owner, spender)
        allowance = self.registry.get(owner).allowances.increase(spender, added_value)
        self._notify(f"Allowance for {spender} on {owner} account increased to {allowance}")
        return allowance

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> int:
        """Lower the allowance; it never drops below zero"""
        self._check_parties(owner, spender)
        allowance = self.registry.get(owner).allowances.decrease(spender, subtracted_value)
        self._notify(f"Allowance for {spender} on {owner} account decreased to {allowance}")
        return allowance

    def transfer_with_allowance(self, owner: str, spender: str, to: str, value: int) -> None:
        """
        Spend value from the allowance owner granted spender, then move value
        from owner to to.

        The spend itself is silent; the transfer notifies as usual. If the
        transfer fails the allowance is restored before the error propagates.
        """
        self._check_parties(owner, spender)
        allowances = self.registry.get(owner).allowances
        had_entry = spender in allowances
        before = allowances.spend(spender, value)

        try:
            self.transfers.transfer(owner, to, value)
        except TokenError:
            if had_entry:
                allowances.set(spender, before)
            else:
                allowances.discard(spender)
            raise

        log_action(
            self.logger, "debug", f"Allowance of {spender} on {owner} spent",
            caller=spender, operation="transfer_from",
            extra={"owner": owner, "to": to, "value": value,
                   "remaining": allowances.get(spender)}
        )
