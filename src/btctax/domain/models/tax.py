"""Domain types for Bitcoin lot tracking and realized capital gains."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from btctax.domain.enums.tax import AccountingMethod, IncomeType, TransactionType


def _new_id() -> str:
    return str(uuid.uuid4())


def as_utc(ts: datetime) -> datetime:
    """Attach UTC to a naive timestamp; aware ones are returned unchanged."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class Transaction(BaseModel):
    """A Buy, Sell or transfer event as supplied by import or manual entry.

    ``total_usd`` is fee-adjusted at ingestion: buys include the fee in the
    cost, sells have it subtracted from the proceeds.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    timestamp: datetime
    transaction_type: TransactionType
    amount_btc: Decimal = Field(gt=0)
    price_per_btc: Decimal
    total_usd: Decimal
    fee: Decimal | None = None
    exchange: str
    wallet: str | None = None
    income_type: IncomeType | None = None
    notes: str = ""

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def wallet_key(self) -> str:
        """Account identity used for per-wallet cost basis."""
        return self.wallet or self.exchange


class Lot(BaseModel):
    """Acquired BTC not yet fully disposed of."""

    id: str  # Id of the Buy transaction that opened it
    purchase_date: datetime
    amount_btc: Decimal
    remaining_btc: Decimal
    price_per_btc: Decimal
    total_cost: Decimal
    fee: Decimal | None = None
    exchange: str
    wallet: str

    @property
    def wallet_key(self) -> str:
        return self.wallet or self.exchange

    @property
    def is_open(self) -> bool:
        return self.remaining_btc > 0

    def consume(self, amount: Decimal) -> None:
        """Reduce the remaining balance; never below zero."""
        if amount < 0 or amount > self.remaining_btc:
            raise ValueError(
                f"Cannot consume {amount} BTC from lot {self.id} with {self.remaining_btc} remaining"
            )
        self.remaining_btc -= amount


class LotSelection(BaseModel):
    """A taxpayer-designated lot portion for Specific Identification."""

    lot_id: str
    amount_btc: Decimal


class LotDetail(BaseModel):
    """One lot's contribution to a single sale."""

    model_config = {"frozen": True}

    lot_id: str
    purchase_date: datetime
    amount_btc: Decimal
    cost_basis_per_btc: Decimal  # Frozen from the lot at match time
    total_cost: Decimal  # amount_btc * cost_basis_per_btc
    days_held: int
    is_long_term: bool
    exchange: str
    wallet: str


class SaleRecord(BaseModel):
    """Outcome of matching one sale against one or more lots."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=_new_id)
    transaction_id: str
    sale_date: datetime
    amount_sold: Decimal  # BTC actually matched, may be below the amount requested
    sale_price_per_btc: Decimal
    total_proceeds: Decimal  # Fee-adjusted
    cost_basis: Decimal
    gain_loss: Decimal  # total_proceeds - cost_basis
    fee: Decimal | None = None
    lot_details: list[LotDetail] = []
    holding_period_days: int = 0  # Display only, see lot_details for terms
    is_long_term: bool = False  # False for mixed-term sales
    is_mixed_term: bool = False
    method: AccountingMethod


class CalculationResult(BaseModel):
    """Full replay of a transaction history under one accounting method."""

    method: AccountingMethod
    lots: list[Lot] = []
    sales: list[SaleRecord] = []
    warnings: list[str] = []


class CarryforwardResult(BaseModel):
    """Yearly capital loss deduction and the remainder rolled forward."""

    net_gain_loss: Decimal  # short + long + prior carryforward
    deductible_loss: Decimal  # 0 for a net gain, otherwise capped at -limit
    carryforward_amount: Decimal  # Negative remainder, or 0
    short_term_gain_loss: Decimal
    long_term_gain_loss: Decimal


class TaxYearSummary(BaseModel):
    """Realized gains for one tax year, split by holding period."""

    year: int
    method: AccountingMethod
    sale_count: int = 0
    total_proceeds: Decimal = Decimal(0)
    total_cost_basis: Decimal = Decimal(0)
    short_term_gain_loss: Decimal = Decimal(0)
    long_term_gain_loss: Decimal = Decimal(0)
    total_gain_loss: Decimal = Decimal(0)
    carryforward: CarryforwardResult


class MethodComparison(BaseModel):
    method: AccountingMethod
    total_gain_loss: Decimal
    short_term_gain_loss: Decimal
    long_term_gain_loss: Decimal
    sale_count: int


class IncomeTypeTotal(BaseModel):
    income_type: IncomeType
    transaction_count: int
    total_usd: Decimal
    total_btc: Decimal


class IncomeSummary(BaseModel):
    """Mining, staking and other income received in a tax year."""

    year: int
    total_usd: Decimal = Decimal(0)
    total_btc: Decimal = Decimal(0)
    by_type: list[IncomeTypeTotal] = []
    transactions: list[Transaction] = []
