from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

MAX_AMOUNT_SCALE = 4
# Largest accepted deposit or withdrawal. With LEDGER_PRECISION digits of
# working precision, balances stay exact for far more records than a run sees.
MAX_AMOUNT = Decimal("1000000000000000")
LEDGER_PRECISION = 38
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


@dataclass
class TransactionRecord:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"TransactionRecord({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


def parse_amount(amount_str: str) -> Optional[Decimal]:
    """
    Parse an amount column into an exact decimal.

    Returns None for an empty column. Raises ValueError for amounts that are
    not finite or carry more than MAX_AMOUNT_SCALE fractional digits.
    decimal.InvalidOperation propagates for text that is not a number at all.
    """
    if not amount_str:
        return None

    amount = Decimal(amount_str)
    if not amount.is_finite():
        raise ValueError(f"amount {amount_str!r} is not a finite number")
    if -amount.as_tuple().exponent > MAX_AMOUNT_SCALE:
        raise ValueError(f"amount {amount_str!r} has more than {MAX_AMOUNT_SCALE} decimal places")
    return amount


def validate_ledger_amount(amount: Decimal) -> Decimal:
    """Check an amount that will move funds: non-negative and at most MAX_AMOUNT."""
    if amount < 0:
        raise ValueError(f"amount {amount} is negative")
    if amount > MAX_AMOUNT:
        raise ValueError(f"amount {amount} exceeds the maximum of {MAX_AMOUNT}")
    return amount


def parse_id(id_str: str, upper_bound: int) -> int:
    if not (id_str.isascii() and id_str.isdigit()):
        raise ValueError(f"id {id_str!r} is not a plain decimal integer")
    value = int(id_str)
    if value > upper_bound:
        raise ValueError(f"id {value} out of range 0..{upper_bound}")
    return value


class ProcessingStats:
    """Counters for a single processing run."""

    def __init__(self):
        self.processed = 0
        self.skipped = 0
        self.failed_withdrawals = 0
        self.ignored = 0
        self.dropped_locked = 0

    def record_processed(self):
        self.processed += 1

    def record_skipped(self):
        self.skipped += 1

    def record_failed_withdrawal(self):
        self.failed_withdrawals += 1

    def record_ignored(self):
        self.ignored += 1

    def record_dropped_locked(self):
        self.dropped_locked += 1

    def summary(self) -> str:
        return (
            f"Processed: {self.processed}, "
            f"Skipped: {self.skipped}, "
            f"Failed withdrawals: {self.failed_withdrawals}, "
            f"Ignored: {self.ignored}, "
            f"Dropped (locked): {self.dropped_locked}"
        )
