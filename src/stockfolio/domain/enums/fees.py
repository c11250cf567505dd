from enum import Enum


class CommissionKind(str, Enum):
    """How a broker charges commission on a trade."""

    PERCENTAGE = "PERCENTAGE"
    PER_SHARE = "PER_SHARE"
    HIGHER_OF = "HIGHER_OF"
    FIXED = "FIXED"
    SLAB = "SLAB"  # Evaluated as PERCENTAGE, slab tables are not looked up


class DepositoryKind(str, Enum):
    """How the depository (CDC) charge is levied on a trade."""

    PER_SHARE = "PER_SHARE"
    FIXED = "FIXED"
    HIGHER_OF = "HIGHER_OF"
