"""Transfer reconciliation across exchanges and wallets.

Pairs each TransferOut with the TransferIn it most plausibly became, and
flags exchanges whose history looks incomplete. Matching is greedy: outs are
taken in input order and each claims its earliest plausible arrival, which
is not a globally optimal assignment.
"""

import logging
from decimal import Decimal

from btctax.accounting.holding import days_between
from btctax.domain.enums.tax import TransactionType
from btctax.domain.models.reconciliation import ExchangeBalance, ReconciliationResult, TransferPair
from btctax.domain.models.tax import Transaction

logger = logging.getLogger(__name__)

BTC_TOLERANCE = Decimal("0.00000001")
MAX_DAYS_WINDOW = 7

INFLOW_TYPES = {TransactionType.BUY, TransactionType.TRANSFER_IN}
OUTFLOW_TYPES = {TransactionType.SELL, TransactionType.TRANSFER_OUT}


def reconcile_transfers(
    transactions: list[Transaction],
    tolerance: Decimal = BTC_TOLERANCE,
    max_days: int = MAX_DAYS_WINDOW,
) -> ReconciliationResult:
    transfer_outs = [t for t in transactions if t.transaction_type == TransactionType.TRANSFER_OUT]
    transfer_ins = [t for t in transactions if t.transaction_type == TransactionType.TRANSFER_IN]

    matched = match_transfers(transfer_outs, transfer_ins, tolerance, max_days)
    used_outs = {p.transfer_out.id for p in matched}
    used_ins = {p.transfer_in.id for p in matched}
    unmatched_outs = [t for t in transfer_outs if t.id not in used_outs]
    unmatched_ins = [t for t in transfer_ins if t.id not in used_ins]

    balances = exchange_balances(transactions)
    suggestions = _suggest_missing(balances, unmatched_outs, unmatched_ins, tolerance)

    logger.info(
        "Reconciled transfers: %d matched, %d unmatched out, %d unmatched in",
        len(matched), len(unmatched_outs), len(unmatched_ins),
    )
    return ReconciliationResult(
        matched_transfers=matched,
        unmatched_transfer_outs=unmatched_outs,
        unmatched_transfer_ins=unmatched_ins,
        exchange_balances=balances,
        suggested_missing=suggestions,
    )


def match_transfers(
    transfer_outs: list[Transaction],
    transfer_ins: list[Transaction],
    tolerance: Decimal = BTC_TOLERANCE,
    max_days: int = MAX_DAYS_WINDOW,
) -> list[TransferPair]:
    """Greedy first-out-first-matched pairing.

    A candidate TransferIn must be on a different exchange, carry the same
    amount within ``tolerance``, and arrive no earlier than the TransferOut
    and within ``max_days``. The candidate with the fewest elapsed days wins.
    """
    pairs: list[TransferPair] = []
    used_ins: set[str] = set()

    for out in transfer_outs:
        best: Transaction | None = None
        best_days = None

        for inp in transfer_ins:
            if inp.id in used_ins:
                continue
            if inp.exchange == out.exchange:
                continue  # Same-exchange moves are not cross-exchange transfers
            if abs(out.amount_btc - inp.amount_btc) > tolerance:
                continue
            if inp.timestamp < out.timestamp:
                continue
            days = abs(days_between(out.timestamp, inp.timestamp))
            if days > max_days:
                continue
            if best_days is None or days < best_days:
                best, best_days = inp, days

        if best is not None:
            used_ins.add(best.id)
            pairs.append(TransferPair(
                transfer_out=out,
                transfer_in=best,
                amount_btc=out.amount_btc,
                days_between=best_days,
            ))

    return pairs


def exchange_balances(transactions: list[Transaction]) -> list[ExchangeBalance]:
    """Inflow (Buy, TransferIn) and outflow (Sell, TransferOut) per exchange, sorted by name."""
    balances: dict[str, ExchangeBalance] = {}
    for t in transactions:
        bal = balances.setdefault(t.exchange, ExchangeBalance(exchange=t.exchange))
        if t.transaction_type in INFLOW_TYPES:
            bal.total_in += t.amount_btc
        elif t.transaction_type in OUTFLOW_TYPES:
            bal.total_out += t.amount_btc

    for bal in balances.values():
        bal.net_balance = bal.total_in - bal.total_out
    return sorted(balances.values(), key=lambda b: b.exchange.casefold())


def _suggest_missing(
    balances: list[ExchangeBalance],
    unmatched_outs: list[Transaction],
    unmatched_ins: list[Transaction],
    tolerance: Decimal,
) -> list[str]:
    suggestions = []
    for bal in balances:
        if bal.net_balance < -tolerance:
            suggestions.append(
                f"{bal.exchange}: Balance is negative ({bal.net_balance:.8f} BTC). "
                "You may be missing buy/transfer-in transactions."
            )

    if unmatched_outs:
        exchanges = ", ".join(dict.fromkeys(t.exchange for t in unmatched_outs))
        suggestions.append(
            f"{len(unmatched_outs)} unmatched outgoing transfers from {exchanges}. "
            "Check destination exchanges for missing imports."
        )
    if unmatched_ins:
        exchanges = ", ".join(dict.fromkeys(t.exchange for t in unmatched_ins))
        suggestions.append(
            f"{len(unmatched_ins)} unmatched incoming transfers to {exchanges}. "
            "Check source exchanges for missing exports."
        )
    return suggestions
