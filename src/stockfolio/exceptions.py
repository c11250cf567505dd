"""Exception hierarchy for the accounting engine."""


class StockfolioError(Exception):
    """Base class for all errors raised by stockfolio."""


class ConfigurationError(StockfolioError):
    """A broker fee schedule is negative or missing a rate its kind requires."""

    def __init__(self, broker_id: str, reason: str) -> None:
        self.broker_id = broker_id
        self.reason = reason
        super().__init__(f"Broker '{broker_id}': {reason}")


class InvalidTransactionError(StockfolioError):
    """A single transaction record could not be read."""

    def __init__(self, transaction_id: str, reason: str) -> None:
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Transaction '{transaction_id}': {reason}")
