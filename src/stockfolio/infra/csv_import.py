"""TransactionCSVImporter — bulk import of a transaction log from CSV."""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from stockfolio.domain.models.portfolio import TransactionError
from stockfolio.domain.models.transaction import Transaction
from stockfolio.exceptions import InvalidTransactionError
from stockfolio.infra.transactions import parse_transaction

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%d/%m/%Y")
FEE_COLUMNS = ("commission", "tax", "cdc_charges")
TRUE_VALUES = {"1", "true", "yes", "y"}


@dataclass
class ImportResult:
    transactions: list[Transaction] = field(default_factory=list)
    errors: list[TransactionError] = field(default_factory=list)


def parse_date(value: str) -> str:
    """Normalize a CSV date cell to ISO format. Raises ValueError if unreadable."""
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    raise ValueError(f"unrecognized date {value!r}")


class TransactionCSVImporter:
    """Parse a CSV export into Transactions, one error per unreadable row.

    Columns: id, ticker, type, quantity, price, date, broker, commission, tax,
    cdc_charges, other_fees, intraday, notes. Blank fee cells mean the fee was
    not recorded, so the broker schedule applies.
    """

    def parse(self, csv_content: str) -> ImportResult:
        result = ImportResult()

        reader = csv.DictReader(io.StringIO(csv_content))
        for idx, row in enumerate(reader, start=1):
            if not any((v or "").strip() for v in row.values()):
                continue
            try:
                result.transactions.append(self._row_to_transaction(row, idx))
            except InvalidTransactionError as exc:
                logger.warning("CSV row %d skipped: %s", idx, exc)
                result.errors.append(TransactionError(transaction_id=exc.transaction_id, reason=exc.reason))

        logger.info("CSV import: %d transactions, %d errors", len(result.transactions), len(result.errors))
        return result

    def _row_to_transaction(self, row: dict[str, str | None], idx: int) -> Transaction:
        cells = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k}
        tx_id = cells.get("id") or f"csv-{idx}"

        try:
            tx_date = parse_date(cells.get("date", ""))
        except ValueError as exc:
            raise InvalidTransactionError(tx_id, f"date: {exc}") from exc

        record: dict[str, Any] = {
            "id": tx_id,
            "ticker": cells.get("ticker", ""),
            "kind": cells.get("type") or cells.get("kind", ""),
            "quantity": cells.get("quantity") or "0",
            "price": cells.get("price") or "0",
            "date": tx_date,
            "broker_ref": cells.get("broker") or None,
            "other_fees": cells.get("other_fees") or "0",
            "intraday": cells.get("intraday", "").lower() in TRUE_VALUES,
            "notes": cells.get("notes", ""),
        }
        for column in FEE_COLUMNS:
            if cells.get(column):
                record[column] = cells[column]

        return parse_transaction(record)
