"""Domain types for cross-exchange transfer reconciliation."""

from decimal import Decimal

from pydantic import BaseModel

from btctax.domain.models.tax import Transaction


class TransferPair(BaseModel):
    """A TransferOut matched with the TransferIn it most plausibly became."""

    transfer_out: Transaction
    transfer_in: Transaction
    amount_btc: Decimal
    days_between: int


class ExchangeBalance(BaseModel):
    exchange: str
    total_in: Decimal = Decimal(0)  # Bought + transferred in
    total_out: Decimal = Decimal(0)  # Sold + transferred out
    net_balance: Decimal = Decimal(0)


class ReconciliationResult(BaseModel):
    matched_transfers: list[TransferPair] = []
    unmatched_transfer_outs: list[Transaction] = []
    unmatched_transfer_ins: list[Transaction] = []
    exchange_balances: list[ExchangeBalance] = []
    suggested_missing: list[str] = []
