"""Reading raw transaction records and round-tripping the log through JSON."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from stockfolio.domain.models.portfolio import TransactionError
from stockfolio.domain.models.transaction import Transaction
from stockfolio.exceptions import InvalidTransactionError

logger = logging.getLogger(__name__)

_LOG_ADAPTER = TypeAdapter(list[Transaction])
MISSING_ID = "<missing id>"

# Names used by older exports of the transaction log
KIND_ALIASES: dict[str, str] = {
    "TAX": "TAX_ADJUSTMENT",
    "HISTORY": "HISTORICAL_ADJUSTMENT",
}
FIELD_ALIASES: dict[str, str] = {
    "type": "kind",
    "broker": "broker_ref",
    "brokerId": "broker_ref",
    "brokerRef": "broker_ref",
    "cdcCharges": "depository_charge",
    "cdc_charges": "depository_charge",
    "depositoryCharge": "depository_charge",
    "otherFees": "other_fees",
}


def _normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, value in record.items():
        target = FIELD_ALIASES.get(key, key)
        # The canonical name wins over an alias
        if target in data and target != key:
            continue
        data[target] = value

    if data.get("id") is not None:
        data["id"] = str(data["id"])

    kind = data.get("kind")
    if isinstance(kind, str):
        kind = kind.strip().upper()
        data["kind"] = KIND_ALIASES.get(kind, kind)
    return data


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "record"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_transaction(record: Transaction | Mapping[str, Any]) -> Transaction:
    """Validate one raw record. Raises InvalidTransactionError naming the record id."""
    if isinstance(record, Transaction):
        return record
    if not isinstance(record, Mapping):
        raise InvalidTransactionError(MISSING_ID, f"expected a mapping, got {type(record).__name__}")

    tx_id = str(record.get("id") or MISSING_ID)
    try:
        return Transaction.model_validate(_normalize_record(record))
    except ValidationError as exc:
        raise InvalidTransactionError(tx_id, _describe(exc)) from exc


def parse_transactions(
    records: Iterable[Transaction | Mapping[str, Any]],
) -> tuple[list[Transaction], list[TransactionError]]:
    """Validate every record; bad ones are reported, the rest still processed."""
    transactions: list[Transaction] = []
    errors: list[TransactionError] = []

    for record in records:
        try:
            transactions.append(parse_transaction(record))
        except InvalidTransactionError as exc:
            logger.warning("Skipping transaction: %s", exc)
            errors.append(TransactionError(transaction_id=exc.transaction_id, reason=exc.reason))

    return transactions, errors


def dump_transactions(transactions: list[Transaction]) -> str:
    """Serialize the log to JSON. Decimals are written as strings, so nothing is lost."""
    return _LOG_ADAPTER.dump_json(transactions, indent=2).decode()


def load_transactions(payload: str | bytes) -> list[Transaction]:
    return _LOG_ADAPTER.validate_json(payload)
