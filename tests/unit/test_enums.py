from stockfolio.domain.enums import (
    TRADE_KINDS,
    CommissionKind,
    DepositoryKind,
    MatchingPolicy,
    TransactionKind,
    WarningKind,
)


class TestEnumsAreStringMixin:
    """All enums use (str, Enum) so they serialize to plain strings in JSON."""

    def test_transaction_kind_is_str(self):
        assert isinstance(TransactionKind.BUY, str)
        assert TransactionKind.HISTORICAL_ADJUSTMENT == "HISTORICAL_ADJUSTMENT"

    def test_commission_kind_is_str(self):
        assert CommissionKind.HIGHER_OF == "HIGHER_OF"

    def test_depository_kind_is_str(self):
        assert isinstance(DepositoryKind.FIXED, str)

    def test_matching_policy_is_str(self):
        assert MatchingPolicy("FIFO") is MatchingPolicy.FIFO

    def test_warning_kind_is_str(self):
        assert WarningKind.OVERSELL == "OVERSELL"


class TestTradeKinds:
    def test_only_buy_and_sell(self):
        assert TRADE_KINDS == {TransactionKind.BUY, TransactionKind.SELL}

    def test_transaction_kinds_complete(self):
        assert {k.value for k in TransactionKind} == {
            "BUY", "SELL", "DIVIDEND", "TAX_ADJUSTMENT", "DEPOSIT",
            "WITHDRAWAL", "ANNUAL_FEE", "HISTORICAL_ADJUSTMENT",
        }
