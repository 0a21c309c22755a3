"""Pydantic schemas for tax API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from btctax.domain.enums.tax import AccountingMethod
from btctax.domain.models.tax import Lot, LotSelection, MethodComparison, SaleRecord, Transaction


class TransactionsRequest(BaseModel):
    transactions: list[Transaction] = []


class CalculateRequest(TransactionsRequest):
    method: AccountingMethod | None = None  # None = configured default
    lot_selections: dict[str, list[LotSelection]] = {}  # Sell transaction id -> picks


class CalculationSummaryResponse(BaseModel):
    lot_count: int
    open_lot_count: int
    remaining_btc: Decimal
    sale_count: int
    total_proceeds: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    warning_count: int


class CalculateResponse(BaseModel):
    method: AccountingMethod
    summary: CalculationSummaryResponse
    lots: list[Lot]
    sales: list[SaleRecord]
    warnings: list[str]


class SimulateSaleRequest(TransactionsRequest):
    amount_btc: Decimal
    price_per_btc: Decimal
    method: AccountingMethod | None = None
    lot_selections: list[LotSelection] = []
    wallet: str | None = None
    sale_date: datetime | None = None


class SimulateSaleResponse(BaseModel):
    sale: SaleRecord
    warnings: list[str]


class CarryforwardRequest(BaseModel):
    short_term_gain_loss: Decimal
    long_term_gain_loss: Decimal
    prior_carryforward: Decimal = Field(Decimal(0), le=0)
    limit: Decimal | None = Field(None, gt=0)  # None = configured limit


class TaxYearRequest(TransactionsRequest):
    year: int
    method: AccountingMethod | None = None
    prior_carryforward: Decimal = Field(Decimal(0), le=0)


class ScheduleRequest(TransactionsRequest):
    method: AccountingMethod | None = None
    prior_carryforward: Decimal = Field(Decimal(0), le=0)  # Carried into the first sale year


class CompareRequest(TransactionsRequest):
    year: int


class CompareResponse(BaseModel):
    year: int
    comparisons: list[MethodComparison]
    best_method: AccountingMethod | None = None


class IncomeRequest(TransactionsRequest):
    year: int


class DuplicatesRequest(BaseModel):
    existing: list[Transaction] = []
    incoming: list[Transaction] = []


class SimilarTransactions(BaseModel):
    transaction_id: str  # Incoming transaction
    matches: list[Transaction]


class DuplicatesResponse(BaseModel):
    duplicates: list[Transaction]
    similar: list[SimilarTransactions]
