"""Sale matching: consume open lots to satisfy a sale.

Two entry points share one matching routine:

- ``commit_sale`` takes the authoritative ledger and reduces lot balances.
- ``simulate_sale`` works on a snapshot of the ledger, so previews never
  touch the caller's lots.

Lots are restricted to the sale's wallet (per-wallet cost basis, Treas. Reg.
TD 9989). When that wallet holds nothing, the global pool is used and a
warning is recorded instead of failing the sale.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from btctax.accounting.holding import days_between, is_long_term
from btctax.accounting.ledger import LotLedger
from btctax.accounting.ordering import fifo_order, ordering_for
from btctax.domain.enums.tax import AccountingMethod, TransactionType
from btctax.domain.models.tax import Lot, LotDetail, LotSelection, SaleRecord, Transaction, as_utc

logger = logging.getLogger(__name__)


def format_sale_date(ts: datetime) -> str:
    """Short display date, e.g. ``Jan 5, 2021``."""
    return f"{ts:%b} {ts.day}, {ts.year}"


def commit_sale(
    sale: Transaction,
    ledger: LotLedger,
    method: AccountingMethod,
    lot_selections: list[LotSelection] | None = None,
    warnings: list[str] | None = None,
) -> SaleRecord | None:
    """Match a sale against the ledger, reducing the consumed lots.

    Returns None when the sale amount is not positive or no lot has
    remaining balance.
    """
    return _match(sale, ledger, method, lot_selections, warnings)


def simulate_sale(
    amount_btc: Decimal,
    price_per_btc: Decimal,
    ledger: LotLedger,
    method: AccountingMethod,
    lot_selections: list[LotSelection] | None = None,
    wallet: str | None = None,
    sale_date: datetime | None = None,
    warnings: list[str] | None = None,
) -> SaleRecord | None:
    """Preview a sale without changing ``ledger``.

    Without a wallet, lots from every wallet are eligible. A naive
    ``sale_date`` is taken as UTC; the default is now.
    """
    if amount_btc <= 0:
        return None

    preview = ledger.snapshot()
    sale = Transaction(
        timestamp=as_utc(sale_date) if sale_date else datetime.now(timezone.utc),
        transaction_type=TransactionType.SELL,
        amount_btc=amount_btc,
        price_per_btc=price_per_btc,
        total_usd=amount_btc * price_per_btc,
        exchange=wallet or "Simulation",
        wallet=wallet,
    )
    return _match(sale, preview, method, lot_selections, warnings, enforce_wallet=wallet is not None)


def _warn(warnings: list[str] | None, message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def _match(
    sale: Transaction,
    ledger: LotLedger,
    method: AccountingMethod,
    lot_selections: list[LotSelection] | None,
    warnings: list[str] | None,
    enforce_wallet: bool = True,
) -> SaleRecord | None:
    if sale.amount_btc <= 0:
        return None

    sale_day = format_sale_date(sale.timestamp)
    if enforce_wallet:
        eligible = ledger.open_lots(sale.wallet_key)
        if not eligible:
            eligible = ledger.open_lots()
            if eligible:
                _warn(
                    warnings,
                    f'No lots found in wallet "{sale.wallet_key}" for sale on {sale_day}. '
                    "Fell back to global lot pool.",
                )
    else:
        eligible = ledger.open_lots()

    if not eligible:
        return None

    if method == AccountingMethod.SPECIFIC_ID and lot_selections:
        plan = _selection_plan(sale, ledger, lot_selections, warnings, enforce_wallet)
    else:
        if method == AccountingMethod.SPECIFIC_ID:
            _warn(
                warnings,
                f"No lot selections supplied for specific identification sale on {sale_day}. "
                "Used FIFO order.",
            )
            ordered = fifo_order(eligible)
        else:
            ordered = ordering_for(method)(eligible)
        plan = [(lot, None) for lot in ordered]

    remaining_to_sell = sale.amount_btc
    total_cost_basis = Decimal(0)
    lot_details: list[LotDetail] = []

    for lot, cap in plan:
        if remaining_to_sell <= 0:
            break
        if not lot.is_open:
            continue

        sell_from_lot = min(remaining_to_sell, lot.remaining_btc)
        if cap is not None:
            sell_from_lot = min(sell_from_lot, cap)
        if sell_from_lot <= 0:
            continue

        cost_for_portion = sell_from_lot * lot.price_per_btc
        total_cost_basis += cost_for_portion

        lot_details.append(LotDetail(
            lot_id=lot.id,
            purchase_date=lot.purchase_date,
            amount_btc=sell_from_lot,
            cost_basis_per_btc=lot.price_per_btc,
            total_cost=cost_for_portion,
            days_held=days_between(lot.purchase_date, sale.timestamp),
            is_long_term=is_long_term(lot.purchase_date, sale.timestamp),
            exchange=lot.exchange,
            wallet=lot.wallet,
        ))

        lot.consume(sell_from_lot)
        remaining_to_sell -= sell_from_lot

    # Term flags come from the lot details, never from the average
    has_short = any(not d.is_long_term for d in lot_details)
    has_long = any(d.is_long_term for d in lot_details)
    is_mixed = has_short and has_long

    avg_days = 0
    if lot_details:
        avg_days = sum(d.days_held for d in lot_details) // len(lot_details)

    return SaleRecord(
        transaction_id=sale.id,
        sale_date=sale.timestamp,
        amount_sold=sale.amount_btc - remaining_to_sell,
        sale_price_per_btc=sale.price_per_btc,
        total_proceeds=sale.total_usd,
        cost_basis=total_cost_basis,
        gain_loss=sale.total_usd - total_cost_basis,
        fee=sale.fee,
        lot_details=lot_details,
        holding_period_days=avg_days,
        is_long_term=has_long and not is_mixed,
        is_mixed_term=is_mixed,
        method=method,
    )


def _selection_plan(
    sale: Transaction,
    ledger: LotLedger,
    lot_selections: list[LotSelection],
    warnings: list[str] | None,
    enforce_wallet: bool = True,
) -> list[tuple[Lot, Decimal | None]]:
    """Resolve Specific Identification selections to lots, in the order given."""
    plan: list[tuple[Lot, Decimal | None]] = []
    for sel in lot_selections:
        lot = ledger.get(sel.lot_id)
        if lot is None or not lot.is_open:
            _warn(warnings, f"Selected lot {sel.lot_id} is unknown or fully consumed; skipped.")
            continue
        if enforce_wallet and lot.wallet_key != sale.wallet_key:
            _warn(
                warnings,
                f'Selected lot {lot.id} is held in "{lot.wallet_key}", not "{sale.wallet_key}".',
            )
        plan.append((lot, sel.amount_btc))
    return plan
