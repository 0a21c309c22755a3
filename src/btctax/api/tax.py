"""Tax API: cost basis, sale previews, carryforward, method comparison and import checks.

Stateless: every request carries the full transaction history and the
result is recomputed from it.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from btctax.accounting.carryforward import compute_carryforward
from btctax.accounting.cost_basis import calculate
from btctax.accounting.duplicates import find_duplicates, find_similar, natural_key
from btctax.accounting.income import summarize_income
from btctax.accounting.ledger import LotLedger
from btctax.accounting.sale_matcher import simulate_sale
from btctax.accounting.summary import best_method, carryforward_schedule, compare_methods, summarize_year
from btctax.api.deps import get_settings
from btctax.api.schemas.tax import (
    CalculateRequest,
    CalculateResponse,
    CalculationSummaryResponse,
    CarryforwardRequest,
    CompareRequest,
    CompareResponse,
    DuplicatesRequest,
    DuplicatesResponse,
    IncomeRequest,
    ScheduleRequest,
    SimilarTransactions,
    SimulateSaleRequest,
    SimulateSaleResponse,
    TaxYearRequest,
)
from btctax.config import Settings
from btctax.domain.models.tax import CarryforwardResult, IncomeSummary, TaxYearSummary

router = APIRouter(prefix="/api/tax", tags=["tax"])

SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.post("/calculate", response_model=CalculateResponse)
async def calculate_cost_basis(body: CalculateRequest, settings: SettingsDep) -> CalculateResponse:
    """Replay the history into lots and sales under one accounting method."""
    method = body.method or settings.default_method
    result = calculate(body.transactions, method, body.lot_selections)

    open_lots = [lot for lot in result.lots if lot.is_open]
    return CalculateResponse(
        method=result.method,
        summary=CalculationSummaryResponse(
            lot_count=len(result.lots),
            open_lot_count=len(open_lots),
            remaining_btc=sum((lot.remaining_btc for lot in open_lots), Decimal(0)),
            sale_count=len(result.sales),
            total_proceeds=sum((s.total_proceeds for s in result.sales), Decimal(0)),
            total_cost_basis=sum((s.cost_basis for s in result.sales), Decimal(0)),
            total_gain_loss=sum((s.gain_loss for s in result.sales), Decimal(0)),
            warning_count=len(result.warnings),
        ),
        lots=result.lots,
        sales=result.sales,
        warnings=result.warnings,
    )


@router.post("/simulate-sale", response_model=SimulateSaleResponse)
async def preview_sale(body: SimulateSaleRequest, settings: SettingsDep) -> SimulateSaleResponse:
    """Preview a sale against the current lots without recording it."""
    method = body.method or settings.default_method
    current = calculate(body.transactions, method)

    warnings: list[str] = []
    sale = simulate_sale(
        body.amount_btc,
        body.price_per_btc,
        LotLedger(current.lots),
        method,
        lot_selections=body.lot_selections,
        wallet=body.wallet,
        sale_date=body.sale_date,
        warnings=warnings,
    )
    if sale is None:
        raise HTTPException(status_code=422, detail="Could not produce a sale record: no lots available")
    return SimulateSaleResponse(sale=sale, warnings=warnings)


@router.post("/carryforward", response_model=CarryforwardResult)
async def carryforward(body: CarryforwardRequest, settings: SettingsDep) -> CarryforwardResult:
    return compute_carryforward(
        body.short_term_gain_loss,
        body.long_term_gain_loss,
        body.prior_carryforward,
        body.limit or settings.annual_loss_limit_usd,
    )


@router.post("/summary", response_model=TaxYearSummary)
async def tax_year_summary(body: TaxYearRequest, settings: SettingsDep) -> TaxYearSummary:
    """Short/long-term totals for one tax year plus its loss carryforward."""
    result = calculate(body.transactions, body.method or settings.default_method)
    return summarize_year(result, body.year, body.prior_carryforward, settings.annual_loss_limit_usd)


@router.post("/carryforward-schedule", response_model=list[TaxYearSummary])
async def tax_year_schedule(body: ScheduleRequest, settings: SettingsDep) -> list[TaxYearSummary]:
    """One summary per year from the first sale to the last, rolling the carryforward."""
    result = calculate(body.transactions, body.method or settings.default_method)
    return carryforward_schedule(result, body.prior_carryforward, settings.annual_loss_limit_usd)


@router.post("/compare", response_model=CompareResponse)
async def compare(body: CompareRequest) -> CompareResponse:
    comparisons = compare_methods(body.transactions, body.year)
    return CompareResponse(year=body.year, comparisons=comparisons, best_method=best_method(comparisons))


@router.post("/income", response_model=IncomeSummary)
async def income(body: IncomeRequest) -> IncomeSummary:
    return summarize_income(body.transactions, body.year)


@router.post("/duplicates", response_model=DuplicatesResponse)
async def check_duplicates(body: DuplicatesRequest) -> DuplicatesResponse:
    """Flag incoming transactions already present, or close to one that is."""
    duplicates = find_duplicates(body.existing, body.incoming)
    duplicate_keys = {natural_key(t) for t in duplicates}

    similar = []
    for tx in body.incoming:
        if natural_key(tx) in duplicate_keys:
            continue
        matches = find_similar(body.existing, tx.transaction_type, tx.timestamp, tx.amount_btc)
        if matches:
            similar.append(SimilarTransactions(transaction_id=tx.id, matches=matches))
    return DuplicatesResponse(duplicates=duplicates, similar=similar)
