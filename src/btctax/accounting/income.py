"""Ordinary income received as BTC (mining, staking, airdrops)."""

from collections import defaultdict
from decimal import Decimal

from btctax.domain.enums.tax import IncomeType, TransactionType
from btctax.domain.models.tax import IncomeSummary, IncomeTypeTotal, Transaction


def income_transactions(transactions: list[Transaction], year: int) -> list[Transaction]:
    """Buys tagged with an income type and dated in ``year``, oldest first."""
    return sorted(
        (
            t for t in transactions
            if t.income_type is not None
            and t.transaction_type == TransactionType.BUY
            and t.timestamp.year == year
        ),
        key=lambda t: t.timestamp,
    )


def summarize_income(transactions: list[Transaction], year: int) -> IncomeSummary:
    """Income totals for a tax year, grouped by income type.

    The USD value at receipt is both the ordinary income and the cost basis
    of the lot it opens.
    """
    selected = income_transactions(transactions, year)
    groups: dict[IncomeType, list[Transaction]] = defaultdict(list)
    for t in selected:
        groups[t.income_type].append(t)

    by_type = [
        IncomeTypeTotal(
            income_type=income_type,
            transaction_count=len(txs),
            total_usd=sum((t.total_usd for t in txs), Decimal(0)),
            total_btc=sum((t.amount_btc for t in txs), Decimal(0)),
        )
        for income_type, txs in groups.items()
    ]

    return IncomeSummary(
        year=year,
        total_usd=sum((t.total_usd for t in selected), Decimal(0)),
        total_btc=sum((t.amount_btc for t in selected), Decimal(0)),
        by_type=by_type,
        transactions=selected,
    )
