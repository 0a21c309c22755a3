"""Cost basis calculation: replay a full history under one accounting method.

Pure function of its inputs. Every call rebuilds the lots from scratch, so
callers wanting responsiveness should memoize on (transactions, method).
"""

import logging
from decimal import Decimal

from btctax.accounting.ledger import LotLedger, sort_history
from btctax.accounting.sale_matcher import commit_sale, format_sale_date
from btctax.domain.enums.tax import AccountingMethod, TransactionType
from btctax.domain.models.tax import CalculationResult, LotSelection, Transaction

logger = logging.getLogger(__name__)


def _btc(amount: Decimal) -> str:
    return f"{amount.normalize():f}"


def calculate(
    transactions: list[Transaction],
    method: AccountingMethod,
    lot_selections: dict[str, list[LotSelection]] | None = None,
) -> CalculationResult:
    """Replay transactions into lots and sale records.

    Args:
        transactions: Any order; sorted by timestamp here.
        method: Accounting method applied to every sale.
        lot_selections: Specific Identification picks keyed by Sell
            transaction id. Ignored for the other methods.

    Returns:
        CalculationResult with the final lot state, sales in replay order
        and accumulated warnings.
    """
    ledger = LotLedger()
    sales = []
    warnings: list[str] = []
    selections = lot_selections or {}

    for tx in sort_history(transactions):
        if tx.transaction_type == TransactionType.BUY:
            ledger.add_buy(tx)
        elif tx.transaction_type == TransactionType.SELL:
            sale = commit_sale(tx, ledger, method, selections.get(tx.id), warnings)
            if sale is None:
                message = f"No lots available for sale on {format_sale_date(tx.timestamp)}"
                logger.warning(message)
                warnings.append(message)
                continue
            if sale.amount_sold < tx.amount_btc:
                message = (
                    f"Sale on {format_sale_date(tx.timestamp)} matched only "
                    f"{_btc(sale.amount_sold)} of {_btc(tx.amount_btc)} BTC"
                )
                logger.warning(message)
                warnings.append(message)
            sales.append(sale)
        # Transfers are non-taxable and only matter for reconciliation

    logger.info(
        "Calculated %s: %d lots, %d sales, %d warnings",
        method.value, len(ledger), len(sales), len(warnings),
    )
    return CalculationResult(method=method, lots=ledger.lots, sales=sales, warnings=warnings)
