"""Duplicate detection for imported or manually entered transactions."""

from datetime import datetime
from decimal import Decimal

from btctax.domain.enums.tax import TransactionType
from btctax.domain.models.tax import Transaction

SIMILAR_AMOUNT_RATIO = Decimal("0.05")


def natural_key(tx: Transaction) -> str:
    """Identity of a transaction independent of its generated id.

    Minute-resolution timestamp, type, amount to 8 places, lower-cased
    exchange and, when present, wallet.
    """
    key = (
        f"{tx.timestamp:%Y-%m-%d %H:%M}|{tx.transaction_type.value}|"
        f"{tx.amount_btc:.8f}|{tx.exchange.lower()}"
    )
    if tx.wallet:
        key += f"|{tx.wallet.lower()}"
    return key


def find_duplicates(existing: list[Transaction], incoming: list[Transaction]) -> list[Transaction]:
    """Incoming transactions whose natural key is already present."""
    seen = {natural_key(t) for t in existing}
    return [t for t in incoming if natural_key(t) in seen]


def find_similar(
    existing: list[Transaction],
    transaction_type: TransactionType,
    timestamp: datetime,
    amount_btc: Decimal,
) -> list[Transaction]:
    """Same type, same calendar day and an amount within 5%."""
    matches = []
    for t in existing:
        if t.transaction_type != transaction_type:
            continue
        if t.timestamp.date() != timestamp.date():
            continue
        ratio = abs(t.amount_btc - amount_btc) / max(t.amount_btc, amount_btc)
        if ratio < SIMILAR_AMOUNT_RATIO:
            matches.append(t)
    return matches
