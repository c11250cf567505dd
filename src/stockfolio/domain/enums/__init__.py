from stockfolio.domain.enums.fees import CommissionKind, DepositoryKind
from stockfolio.domain.enums.ledger import MatchingPolicy, WarningKind
from stockfolio.domain.enums.transaction import TRADE_KINDS, TransactionKind

__all__ = [
    "CommissionKind",
    "DepositoryKind",
    "MatchingPolicy",
    "TRADE_KINDS",
    "TransactionKind",
    "WarningKind",
]
