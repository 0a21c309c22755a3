from enum import Enum


class TransactionType(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    TRANSFER_IN = "TransferIn"
    TRANSFER_OUT = "TransferOut"


class AccountingMethod(str, Enum):
    """Lot selection method used to match a sale against open lots."""

    FIFO = "FIFO"
    LIFO = "LIFO"
    HIFO = "HIFO"
    SPECIFIC_ID = "SpecificID"


class IncomeType(str, Enum):
    """Why a Buy represents ordinary income rather than a purchase."""

    MINING = "mining"
    STAKING = "staking"
    AIRDROP = "airdrop"
    INTEREST = "interest"
    OTHER = "other"
