"""Tax-year summaries, rolling carryforward and method comparison."""

from decimal import Decimal

from btctax.accounting.carryforward import DEFAULT_LOSS_LIMIT, compute_carryforward
from btctax.accounting.cost_basis import calculate
from btctax.domain.enums.tax import AccountingMethod
from btctax.domain.models.tax import (
    CalculationResult,
    MethodComparison,
    SaleRecord,
    TaxYearSummary,
    Transaction,
)

# SpecificID needs manual lot picks, so it is left out of automatic comparison
COMPARABLE_METHODS = (AccountingMethod.FIFO, AccountingMethod.LIFO, AccountingMethod.HIFO)


def split_by_term(sale: SaleRecord) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    """(short proceeds, short basis, long proceeds, long basis) for one sale.

    Proceeds of a mixed-term sale are apportioned by BTC amount. A sale with
    no matched lots counts as short-term.
    """
    lt_btc = sum((d.amount_btc for d in sale.lot_details if d.is_long_term), Decimal(0))
    lt_basis = sum((d.total_cost for d in sale.lot_details if d.is_long_term), Decimal(0))
    st_basis = sale.cost_basis - lt_basis

    if lt_btc == 0:
        return sale.total_proceeds, st_basis, Decimal(0), Decimal(0)
    if lt_btc == sale.amount_sold:
        return Decimal(0), Decimal(0), sale.total_proceeds, lt_basis

    lt_proceeds = sale.total_proceeds * lt_btc / sale.amount_sold
    return sale.total_proceeds - lt_proceeds, st_basis, lt_proceeds, lt_basis


def sales_in_year(result: CalculationResult, year: int) -> list[SaleRecord]:
    return [s for s in result.sales if s.sale_date.year == year]


def summarize_year(
    result: CalculationResult,
    year: int,
    prior_carryforward: Decimal = Decimal(0),
    limit: Decimal = DEFAULT_LOSS_LIMIT,
) -> TaxYearSummary:
    """Realized gain/loss for sales dated in ``year``, plus the carryforward."""
    st_gl = lt_gl = Decimal(0)
    proceeds = basis = Decimal(0)
    sales = sales_in_year(result, year)

    for sale in sales:
        st_proceeds, st_basis, lt_proceeds, lt_basis = split_by_term(sale)
        st_gl += st_proceeds - st_basis
        lt_gl += lt_proceeds - lt_basis
        proceeds += sale.total_proceeds
        basis += sale.cost_basis

    return TaxYearSummary(
        year=year,
        method=result.method,
        sale_count=len(sales),
        total_proceeds=proceeds,
        total_cost_basis=basis,
        short_term_gain_loss=st_gl,
        long_term_gain_loss=lt_gl,
        total_gain_loss=st_gl + lt_gl,
        carryforward=compute_carryforward(st_gl, lt_gl, prior_carryforward, limit),
    )


def carryforward_schedule(
    result: CalculationResult,
    prior_carryforward: Decimal = Decimal(0),
    limit: Decimal = DEFAULT_LOSS_LIMIT,
) -> list[TaxYearSummary]:
    """Summaries for every year from the first sale to the last.

    Years without sales are included so an existing carryforward keeps being
    deducted.
    """
    if not result.sales:
        return []

    years = [s.sale_date.year for s in result.sales]
    schedule = []
    carry = prior_carryforward
    for year in range(min(years), max(years) + 1):
        summary = summarize_year(result, year, carry, limit)
        carry = summary.carryforward.carryforward_amount
        schedule.append(summary)
    return schedule


def compare_methods(
    transactions: list[Transaction],
    year: int,
    methods: tuple[AccountingMethod, ...] = COMPARABLE_METHODS,
) -> list[MethodComparison]:
    """Gain/loss for ``year`` under each method, each from its own replay."""
    comparisons = []
    for method in methods:
        summary = summarize_year(calculate(transactions, method), year)
        comparisons.append(MethodComparison(
            method=method,
            total_gain_loss=summary.total_gain_loss,
            short_term_gain_loss=summary.short_term_gain_loss,
            long_term_gain_loss=summary.long_term_gain_loss,
            sale_count=summary.sale_count,
        ))
    return comparisons


def best_method(comparisons: list[MethodComparison]) -> AccountingMethod | None:
    """Method with the lowest total gain; the first listed wins ties."""
    if not comparisons:
        return None
    return min(comparisons, key=lambda c: c.total_gain_loss).method
