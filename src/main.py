import csv
import sys
import logging
from decimal import Context, Decimal
from pathlib import Path
from typing import Dict, TextIO

from account import ClientAccount
from models import LEDGER_PRECISION
from payments_engine import PaymentsEngine

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)

HEADER = "client,available,held,total,locked"


def format_decimal(value: Decimal) -> str:
    """Format decimal without rounding, removing trailing zeros."""
    normalized = value.normalize(Context(prec=LEDGER_PRECISION))
    return f"{normalized:f}"


def format_account(account: ClientAccount) -> str:
    return (
        f"{account.client_id},"
        f"{format_decimal(account.available)},"
        f"{format_decimal(account.held)},"
        f"{format_decimal(account.total)},"
        f"{str(account.is_locked).lower()}"
    )


def write_accounts(accounts: Dict[int, ClientAccount], out: TextIO) -> None:
    print(HEADER, file=out)
    for client_id in sorted(accounts.keys()):
        print(format_account(accounts[client_id]), file=out)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: payments-ledger <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    if not Path(filepath).is_file():
        print(f"No file found at {filepath}", file=sys.stderr)
        return 1

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.error(f"Could not read {filepath}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
