import logging
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Dict, List, Optional

from models import LEDGER_PRECISION
from transaction import (
    IGNORE_ACTION,
    ActionType,
    LedgerAction,
    Transaction,
    TransactionState,
)

logger = logging.getLogger(__name__)


class TransactionHistory:
    """
    Every entry stored under one transaction id, plus its resolved state.

    The resolved state is what replaying all entries from the first one
    would give: the first entry is its own resolved state and each later
    entry is folded in with Transaction.progress() as it is appended.
    """

    def __init__(self, first: Transaction):
        self._entries: List[Transaction] = [first]
        self._resolved = first

    @property
    def base(self) -> Transaction:
        return self._entries[0]

    @property
    def resolved(self) -> Transaction:
        return self._resolved

    @property
    def entries(self) -> List[Transaction]:
        return list(self._entries)

    def is_disputable(self) -> bool:
        # Only withdrawals that actually moved funds can be disputed.
        return self.base.state == TransactionState.WITHDRAW

    def append(self, transaction: Transaction) -> None:
        self._entries.append(transaction)
        self._resolved = self._resolved.progress(transaction)


@dataclass
class ClientAccount:
    """
    One client's balances and transaction history.

    last_action and last_transaction describe the most recent call to apply()
    that was not dropped: the balance effect that was resolved for it, and the
    entry as stored (a withdrawal that bounced is stored as FAILED_WITHDRAW).
    Callers read them to report outcomes; apply() itself returns nothing.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    last_action: Optional[LedgerAction] = field(default=None, init=False, repr=False, compare=False)
    last_transaction: Optional[Transaction] = field(default=None, init=False, repr=False, compare=False)
    _ledger: Dict[int, TransactionHistory] = field(default_factory=dict, init=False, repr=False, compare=False)

    @property
    def total(self) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = LEDGER_PRECISION
            return self.available + self.held

    @property
    def is_locked(self) -> bool:
        return self.locked

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def apply(self, transaction: Transaction) -> None:
        """
        Fold a transaction into this account and record it.

        Locked accounts drop the transaction without storing it. A withdrawal
        larger than the available funds is stored as FAILED_WITHDRAW and does
        not touch the balances. Nothing is raised for business failures.
        """
        if self.locked:
            logger.info(f"Client {self.client_id}: account locked, dropping {transaction}")
            return

        action = self._get_action(transaction)

        with localcontext() as ctx:
            ctx.prec = LEDGER_PRECISION
            self._apply_action(action, transaction)

    def _apply_action(self, action: LedgerAction, transaction: Transaction) -> None:
        match action.action_type:
            case ActionType.ADD_AVAILABLE:
                self.credit(action.amount)
            case ActionType.REMOVE_AVAILABLE:
                if action.amount > self.available:
                    transaction = transaction.failed_withdraw(self.available)
                    logger.info(f"Client {self.client_id}: withdrawal tx {transaction.transaction_id} failed: {transaction.note}")
                else:
                    self.debit(action.amount)
            case ActionType.HOLD:
                # Withdrawn funds are held on top of the original debit, so available can go negative.
                self.hold(action.amount)
            case ActionType.RELEASE:
                self.release_hold(action.amount)
            case ActionType.CHARGEBACK:
                self.remove_held(action.amount)
                self.locked = True
            case ActionType.IGNORE:
                logger.info(f"Client {self.client_id}: {transaction.state.value} for tx {transaction.transaction_id} ignored")

        self.last_action = action
        self.last_transaction = transaction
        self._record(transaction)

    def _get_action(self, transaction: Transaction) -> LedgerAction:
        if transaction.state in (TransactionState.DEPOSIT, TransactionState.WITHDRAW):
            return transaction.action()

        resolved = self._resolve(transaction)
        if resolved is None:
            return IGNORE_ACTION
        return resolved.action()

    def _resolve(self, transaction: Transaction) -> Optional[Transaction]:
        """Resolve a dispute-class event against the stored history for its id."""
        history = self._ledger.get(transaction.transaction_id)
        if history is None or not history.is_disputable():
            return None
        return history.resolved.progress(transaction)

    def _record(self, transaction: Transaction) -> None:
        history = self._ledger.get(transaction.transaction_id)
        if history is None:
            self._ledger[transaction.transaction_id] = TransactionHistory(transaction)
        else:
            history.append(transaction)

    def history(self, transaction_id: int) -> List[Transaction]:
        """Return the stored entries for a transaction id in submission order."""
        history = self._ledger.get(transaction_id)
        if history is None:
            return []
        return history.entries

    def resolved_state(self, transaction_id: int) -> Optional[TransactionState]:
        history = self._ledger.get(transaction_id)
        if history is None:
            return None
        return history.resolved.state
