import csv
import logging
import sys
from decimal import InvalidOperation
from typing import Dict, Iterable, Optional

from account import ClientAccount
from models import (
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    ProcessingStats,
    TransactionRecord,
    TransactionType,
    parse_amount,
    parse_id,
    validate_ledger_amount,
)
from transaction import ActionType, Transaction, TransactionState

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Applies transaction records to client accounts in input order.
    The engine owns the client id -> account mapping for one run.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="") as f:
            self.process_rows(csv.DictReader(f))

        print(self._stats.summary(), file=sys.stderr)

        return self.get_all_accounts()

    def process_rows(self, rows: Iterable[Dict[str, str]]) -> None:
        for row in rows:
            record = self._parse_csv_row(row)
            if record is None:
                self._stats.record_skipped()
                continue
            self.process_record(record)

    def process_record(self, record: TransactionRecord) -> None:
        account = self.get_or_create_account(record.client_id)

        if account.is_locked:
            logger.info(f"Client {record.client_id}: account locked, dropping {record}")
            self._stats.record_dropped_locked()
            return

        account.apply(Transaction.from_record(record))

        if account.last_transaction.state == TransactionState.FAILED_WITHDRAW:
            self._stats.record_failed_withdrawal()
        elif account.last_action.action_type == ActionType.IGNORE:
            self._stats.record_ignored()
        else:
            self._stats.record_processed()

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def _parse_csv_row(self, row: Dict[str, str]) -> Optional[TransactionRecord]:
        """Parse CSV row into TransactionRecord."""
        try:
            normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

            transaction_type = TransactionType(normalized["type"].lower())
            client_id = parse_id(normalized["client"], MAX_CLIENT_ID)
            transaction_id = parse_id(normalized["tx"], MAX_TRANSACTION_ID)

            # Amount precision is checked on every kind, but only deposits and withdrawals keep theirs.
            amount = parse_amount(normalized.get("amount", ""))
            if not transaction_type.carries_amount:
                amount = None
            elif amount is None:
                raise ValueError(f"{transaction_type.value} requires an amount")
            else:
                amount = validate_ledger_amount(amount)

            return TransactionRecord(
                transaction_type=transaction_type,
                client_id=client_id,
                transaction_id=transaction_id,
                amount=amount,
            )
        except (KeyError, ValueError, InvalidOperation) as e:
            logger.warning(f"Failed to parse row {row}: {e}")
            return None
