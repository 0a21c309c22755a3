"""Lot ledger: open inventory rebuilt from a transaction history."""

from btctax.domain.enums.tax import TransactionType
from btctax.domain.models.tax import Lot, Transaction


def sort_history(transactions: list[Transaction]) -> list[Transaction]:
    """Chronological order; same-timestamp events keep their input order."""
    return sorted(transactions, key=lambda t: t.timestamp)


class LotLedger:
    """Owns a list of lots.

    Lots are never removed; a lot with nothing remaining simply stops being
    eligible for matching. ``snapshot`` hands out an independent deep copy
    for previews.
    """

    def __init__(self, lots: list[Lot] | None = None) -> None:
        self._lots: list[Lot] = list(lots) if lots else []

    @property
    def lots(self) -> list[Lot]:
        return self._lots

    def add_buy(self, tx: Transaction) -> Lot:
        """Open a lot for a Buy. ``total_usd`` already carries the fee."""
        lot = Lot(
            id=tx.id,
            purchase_date=tx.timestamp,
            amount_btc=tx.amount_btc,
            remaining_btc=tx.amount_btc,
            price_per_btc=tx.price_per_btc,
            total_cost=tx.total_usd,
            fee=tx.fee,
            exchange=tx.exchange,
            wallet=tx.wallet_key,
        )
        self._lots.append(lot)
        return lot

    def get(self, lot_id: str) -> Lot | None:
        for lot in self._lots:
            if lot.id == lot_id:
                return lot
        return None

    def open_lots(self, wallet: str | None = None) -> list[Lot]:
        """Lots with remaining balance, optionally restricted to one wallet."""
        return [
            lot for lot in self._lots
            if lot.is_open and (wallet is None or lot.wallet_key == wallet)
        ]

    def snapshot(self) -> "LotLedger":
        return LotLedger([lot.model_copy(deep=True) for lot in self._lots])

    def __len__(self) -> int:
        return len(self._lots)


def build_ledger(transactions: list[Transaction]) -> LotLedger:
    """Replay Buy events only; transfers and sells do not open lots."""
    ledger = LotLedger()
    for tx in sort_history(transactions):
        if tx.transaction_type == TransactionType.BUY:
            ledger.add_buy(tx)
    return ledger
