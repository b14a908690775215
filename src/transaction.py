from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from models import TransactionRecord, TransactionType


class TransactionState(Enum):
    WITHDRAW = "withdraw"
    DEPOSIT = "deposit"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"
    IGNORE = "ignore"
    FAILED_WITHDRAW = "failed_withdraw"


class ActionType(Enum):
    ADD_AVAILABLE = "add_available"
    REMOVE_AVAILABLE = "remove_available"
    HOLD = "hold"
    RELEASE = "release"
    CHARGEBACK = "chargeback"
    IGNORE = "ignore"


@dataclass(frozen=True)
class LedgerAction:
    action_type: ActionType
    amount: Decimal = Decimal("0")


IGNORE_ACTION = LedgerAction(ActionType.IGNORE)

_STATE_FOR_TYPE = {
    TransactionType.WITHDRAWAL: TransactionState.WITHDRAW,
    TransactionType.DEPOSIT: TransactionState.DEPOSIT,
    TransactionType.DISPUTE: TransactionState.DISPUTE,
    TransactionType.RESOLVE: TransactionState.RESOLVE,
    TransactionType.CHARGEBACK: TransactionState.CHARGEBACK,
}

# Deposits never progress, and any pair missing here resolves to IGNORE.
_TRANSITIONS = {
    (TransactionState.WITHDRAW, TransactionState.DISPUTE): TransactionState.DISPUTE,
    (TransactionState.DISPUTE, TransactionState.RESOLVE): TransactionState.RESOLVE,
    (TransactionState.DISPUTE, TransactionState.CHARGEBACK): TransactionState.CHARGEBACK,
}

_ACTIONS = {
    TransactionState.DEPOSIT: ActionType.ADD_AVAILABLE,
    TransactionState.WITHDRAW: ActionType.REMOVE_AVAILABLE,
    TransactionState.DISPUTE: ActionType.HOLD,
    TransactionState.RESOLVE: ActionType.RELEASE,
    TransactionState.CHARGEBACK: ActionType.CHARGEBACK,
}


@dataclass(frozen=True)
class Transaction:
    """
    A ledger entry for one transaction id.

    The amount never changes once created. Lifecycle changes produce new
    Transaction values through progress() and failed_withdraw().
    """

    transaction_id: int
    state: TransactionState = TransactionState.IGNORE
    amount: Decimal = Decimal("0")
    note: str = ""

    @classmethod
    def from_record(cls, record: TransactionRecord) -> "Transaction":
        amount = record.amount if record.amount is not None else Decimal("0")
        return cls(
            transaction_id=record.transaction_id,
            state=_STATE_FOR_TYPE[record.transaction_type],
            amount=amount,
        )

    def progress(self, other: "Transaction") -> "Transaction":
        """Fold a later event for this id into the current state."""
        next_state = _TRANSITIONS.get((self.state, other.state), TransactionState.IGNORE)
        return replace(self, state=next_state, note="")

    def action(self) -> LedgerAction:
        action_type = _ACTIONS.get(self.state)
        if action_type is None:
            return IGNORE_ACTION
        return LedgerAction(action_type, self.amount)

    def failed_withdraw(self, available: Decimal) -> "Transaction":
        return replace(
            self,
            state=TransactionState.FAILED_WITHDRAW,
            note=f"Tried to withdraw {self.amount} but account had {available} available",
        )

    def __repr__(self) -> str:
        return f"Transaction({self.state.value}, tx={self.transaction_id}, amount={self.amount})"
