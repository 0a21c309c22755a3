from btctax.domain.enums.tax import AccountingMethod, IncomeType, TransactionType

__all__ = [
    "AccountingMethod",
    "IncomeType",
    "TransactionType",
]
