"""Lot ordering strategies, one pure function per accounting method.

Every strategy returns a new list and uses a stable sort, so lots with equal
keys keep ledger (insertion) order.
"""

from collections.abc import Callable

from btctax.domain.enums.tax import AccountingMethod
from btctax.domain.models.tax import Lot

LotOrdering = Callable[[list[Lot]], list[Lot]]


def fifo_order(lots: list[Lot]) -> list[Lot]:
    return sorted(lots, key=lambda lot: lot.purchase_date)


def lifo_order(lots: list[Lot]) -> list[Lot]:
    return sorted(lots, key=lambda lot: lot.purchase_date, reverse=True)


def hifo_order(lots: list[Lot]) -> list[Lot]:
    """Highest cost basis first, which minimizes the taxable gain."""
    return sorted(lots, key=lambda lot: lot.price_per_btc, reverse=True)


ORDERINGS: dict[AccountingMethod, LotOrdering] = {
    AccountingMethod.FIFO: fifo_order,
    AccountingMethod.LIFO: lifo_order,
    AccountingMethod.HIFO: hifo_order,
}


def ordering_for(method: AccountingMethod) -> LotOrdering:
    """Ordering for the automatic methods. SpecificID is driven by selections."""
    try:
        return ORDERINGS[method]
    except KeyError:
        raise ValueError(f"{method.value} has no automatic lot ordering") from None
