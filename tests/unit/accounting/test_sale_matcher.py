"""Tests for sale matching: methods, wallet enforcement, terms and previews."""

from datetime import UTC, datetime
from decimal import Decimal

from btctax.accounting.ledger import LotLedger
from btctax.accounting.sale_matcher import commit_sale, simulate_sale
from btctax.domain.enums.tax import AccountingMethod, TransactionType
from btctax.domain.models.tax import LotSelection, Transaction


def _tx(tx_type: str, amount: str, price: str, when: datetime, exchange: str = "Coinbase",
        wallet: str | None = None, tx_id: str | None = None) -> Transaction:
    extra = {"id": tx_id} if tx_id else {}
    return Transaction(
        timestamp=when,
        transaction_type=TransactionType(tx_type),
        amount_btc=Decimal(amount),
        price_per_btc=Decimal(price),
        total_usd=Decimal(amount) * Decimal(price),
        exchange=exchange,
        wallet=wallet,
        **extra,
    )


def _two_lot_ledger() -> LotLedger:
    """1 BTC @ $10,000 on 2021-01-01 and 1 BTC @ $30,000 on 2021-06-01."""
    ledger = LotLedger()
    ledger.add_buy(_tx("Buy", "1", "10000", datetime(2021, 1, 1, tzinfo=UTC), tx_id="jan"))
    ledger.add_buy(_tx("Buy", "1", "30000", datetime(2021, 6, 1, tzinfo=UTC), tx_id="jun"))
    return ledger


SALE_DATE = datetime(2021, 12, 1, tzinfo=UTC)


class TestMethods:
    def test_fifo_spans_lots(self):
        ledger = _two_lot_ledger()
        sale = commit_sale(_tx("Sell", "1.5", "40000", SALE_DATE), ledger, AccountingMethod.FIFO)

        assert sale is not None
        assert [d.lot_id for d in sale.lot_details] == ["jan", "jun"]
        assert sale.lot_details[0].amount_btc == Decimal("1")
        assert sale.lot_details[0].cost_basis_per_btc == Decimal("10000")
        assert sale.lot_details[1].amount_btc == Decimal("0.5")
        assert sale.lot_details[1].cost_basis_per_btc == Decimal("30000")
        assert sale.cost_basis == Decimal("25000")
        assert sale.gain_loss == Decimal("35000")
        assert ledger.get("jan").remaining_btc == Decimal("0")
        assert ledger.get("jun").remaining_btc == Decimal("0.5")

    def test_lifo_newest_first(self):
        ledger = _two_lot_ledger()
        sale = commit_sale(_tx("Sell", "1", "40000", SALE_DATE), ledger, AccountingMethod.LIFO)

        assert [d.lot_id for d in sale.lot_details] == ["jun"]
        assert sale.cost_basis == Decimal("30000")

    def test_hifo_minimizes_gain(self):
        hifo = commit_sale(_tx("Sell", "1", "40000", SALE_DATE), _two_lot_ledger(), AccountingMethod.HIFO)
        fifo = commit_sale(_tx("Sell", "1", "40000", SALE_DATE), _two_lot_ledger(), AccountingMethod.FIFO)

        assert hifo.cost_basis == Decimal("30000")
        assert hifo.gain_loss == Decimal("10000")
        assert fifo.gain_loss == Decimal("30000")
        assert hifo.gain_loss < fifo.gain_loss

    def test_method_recorded(self):
        sale = commit_sale(_tx("Sell", "1", "40000", SALE_DATE), _two_lot_ledger(), AccountingMethod.HIFO)
        assert sale.method == AccountingMethod.HIFO


class TestSpecificIdentification:
    def test_consumes_selected_lots_in_order(self):
        ledger = _two_lot_ledger()
        selections = [
            LotSelection(lot_id="jun", amount_btc=Decimal("0.25")),
            LotSelection(lot_id="jan", amount_btc=Decimal("1")),
        ]
        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE), ledger, AccountingMethod.SPECIFIC_ID, selections,
        )

        assert [(d.lot_id, d.amount_btc) for d in sale.lot_details] == [
            ("jun", Decimal("0.25")),
            ("jan", Decimal("0.75")),
        ]
        assert sale.cost_basis == Decimal("15000")  # 0.25 * 30000 + 0.75 * 10000
        assert ledger.get("jan").remaining_btc == Decimal("0.25")

    def test_selection_clamped_by_lot_remaining(self):
        ledger = _two_lot_ledger()
        selections = [LotSelection(lot_id="jan", amount_btc=Decimal("5"))]
        sale = commit_sale(
            _tx("Sell", "2", "40000", SALE_DATE), ledger, AccountingMethod.SPECIFIC_ID, selections,
        )

        assert sale.amount_sold == Decimal("1")
        assert ledger.get("jun").remaining_btc == Decimal("1")

    def test_unknown_lot_skipped_with_warning(self):
        warnings: list[str] = []
        selections = [
            LotSelection(lot_id="missing", amount_btc=Decimal("1")),
            LotSelection(lot_id="jun", amount_btc=Decimal("1")),
        ]
        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE), _two_lot_ledger(),
            AccountingMethod.SPECIFIC_ID, selections, warnings,
        )

        assert [d.lot_id for d in sale.lot_details] == ["jun"]
        assert any("missing" in w for w in warnings)

    def test_without_selections_falls_back_to_fifo(self):
        warnings: list[str] = []
        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE), _two_lot_ledger(),
            AccountingMethod.SPECIFIC_ID, None, warnings,
        )

        assert [d.lot_id for d in sale.lot_details] == ["jan"]
        assert sale.method == AccountingMethod.SPECIFIC_ID
        assert any("Used FIFO order" in w for w in warnings)


class TestWalletEnforcement:
    def _ledger(self) -> LotLedger:
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "10000", datetime(2021, 1, 1, tzinfo=UTC), "Coinbase", tx_id="cb"))
        ledger.add_buy(_tx("Buy", "1", "20000", datetime(2021, 2, 1, tzinfo=UTC), "Kraken", tx_id="kr"))
        return ledger

    def test_only_same_wallet_lots_used(self):
        ledger = self._ledger()
        warnings: list[str] = []
        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE, "Kraken"), ledger, AccountingMethod.FIFO, None, warnings,
        )

        assert [d.lot_id for d in sale.lot_details] == ["kr"]
        assert sale.lot_details[0].wallet == "Kraken"
        assert ledger.get("cb").remaining_btc == Decimal("1")
        assert warnings == []

    def test_wallet_label_overrides_exchange(self):
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "10000", datetime(2021, 1, 1, tzinfo=UTC), "Coinbase", "Cold", "cold"))
        ledger.add_buy(_tx("Buy", "1", "20000", datetime(2021, 2, 1, tzinfo=UTC), "Coinbase", tx_id="hot"))

        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE, "Coinbase"), ledger, AccountingMethod.FIFO,
        )
        assert [d.lot_id for d in sale.lot_details] == ["hot"]

    def test_falls_back_to_global_pool_with_warning(self):
        warnings: list[str] = []
        sale = commit_sale(
            _tx("Sell", "1", "40000", SALE_DATE, "Gemini"), self._ledger(), AccountingMethod.FIFO, None, warnings,
        )

        assert [d.lot_id for d in sale.lot_details] == ["cb"]
        assert len(warnings) == 1
        assert 'No lots found in wallet "Gemini"' in warnings[0]
        assert "Fell back to global lot pool." in warnings[0]


class TestTerms:
    def test_exact_anniversary_is_short_term(self):
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "10000", datetime(2021, 1, 15, tzinfo=UTC)))
        sale = commit_sale(
            _tx("Sell", "1", "40000", datetime(2022, 1, 15, tzinfo=UTC)), ledger, AccountingMethod.FIFO,
        )
        assert sale.is_long_term is False
        assert sale.lot_details[0].is_long_term is False

    def test_day_after_anniversary_is_long_term(self):
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "10000", datetime(2021, 1, 15, tzinfo=UTC)))
        sale = commit_sale(
            _tx("Sell", "1", "40000", datetime(2022, 1, 16, tzinfo=UTC)), ledger, AccountingMethod.FIFO,
        )
        assert sale.is_long_term is True
        assert sale.is_mixed_term is False
        assert sale.holding_period_days == 366

    def test_mixed_term_sale(self):
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "10000", datetime(2020, 1, 1, tzinfo=UTC), tx_id="old"))
        ledger.add_buy(_tx("Buy", "1", "30000", datetime(2021, 3, 1, tzinfo=UTC), tx_id="new"))
        sale = commit_sale(
            _tx("Sell", "1.5", "40000", datetime(2021, 6, 1, tzinfo=UTC)), ledger, AccountingMethod.FIFO,
        )

        assert sale.is_mixed_term is True
        assert sale.is_long_term is False
        assert [(d.lot_id, d.is_long_term) for d in sale.lot_details] == [("old", True), ("new", False)]

    def test_average_holding_days_floored(self):
        ledger = LotLedger()
        ledger.add_buy(_tx("Buy", "1", "100", datetime(2021, 1, 1, tzinfo=UTC)))
        ledger.add_buy(_tx("Buy", "1", "100", datetime(2021, 1, 2, tzinfo=UTC)))
        sale = commit_sale(
            _tx("Sell", "2", "200", datetime(2021, 1, 11, tzinfo=UTC)), ledger, AccountingMethod.FIFO,
        )
        # (10 + 9) / 2 = 9.5
        assert sale.holding_period_days == 9


class TestEdgeCases:
    def test_zero_amount_returns_none(self):
        ledger = _two_lot_ledger()
        # Validation rejects zero amounts, so build the sale past it
        sale = _tx("Sell", "1", "40000", SALE_DATE).model_copy(update={"amount_btc": Decimal("0")})
        assert commit_sale(sale, ledger, AccountingMethod.FIFO) is None
        assert ledger.get("jan").remaining_btc == Decimal("1")

    def test_no_lots_returns_none(self):
        assert commit_sale(_tx("Sell", "1", "40000", SALE_DATE), LotLedger(), AccountingMethod.FIFO) is None

    def test_exhausted_lots_return_none(self):
        ledger = _two_lot_ledger()
        commit_sale(_tx("Sell", "2", "40000", SALE_DATE), ledger, AccountingMethod.FIFO)
        assert commit_sale(_tx("Sell", "1", "40000", SALE_DATE), ledger, AccountingMethod.FIFO) is None

    def test_partial_fill(self):
        ledger = _two_lot_ledger()
        sale = commit_sale(_tx("Sell", "3", "40000", SALE_DATE), ledger, AccountingMethod.FIFO)

        assert sale.amount_sold == Decimal("2")
        assert sale.total_proceeds == Decimal("120000")
        assert sale.cost_basis == Decimal("40000")
        assert sale.gain_loss == Decimal("80000")
        assert all(lot.remaining_btc == 0 for lot in ledger.lots)

    def test_lot_details_frozen_from_lot(self):
        sale = commit_sale(_tx("Sell", "0.5", "40000", SALE_DATE), _two_lot_ledger(), AccountingMethod.FIFO)
        detail = sale.lot_details[0]
        assert detail.total_cost == Decimal("5000")
        assert detail.days_held == 334
        assert detail.exchange == "Coinbase"


class TestSimulateSale:
    def test_does_not_mutate_ledger(self):
        ledger = _two_lot_ledger()
        first = simulate_sale(
            Decimal("1.5"), Decimal("40000"), ledger, AccountingMethod.FIFO, sale_date=SALE_DATE,
        )
        second = simulate_sale(
            Decimal("1.5"), Decimal("40000"), ledger, AccountingMethod.FIFO, sale_date=SALE_DATE,
        )

        assert [lot.remaining_btc for lot in ledger.lots] == [Decimal("1"), Decimal("1")]
        assert first.cost_basis == second.cost_basis == Decimal("25000")
        assert first.gain_loss == second.gain_loss
        assert first.lot_details == second.lot_details

    def test_proceeds_from_amount_and_price(self):
        sale = simulate_sale(
            Decimal("0.5"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.HIFO, sale_date=SALE_DATE,
        )
        assert sale.total_proceeds == Decimal("20000")
        assert sale.cost_basis == Decimal("15000")

    def test_without_wallet_uses_every_wallet(self):
        warnings: list[str] = []
        sale = simulate_sale(
            Decimal("1"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.FIFO,
            sale_date=SALE_DATE, warnings=warnings,
        )
        assert sale.amount_sold == Decimal("1")
        assert warnings == []

    def test_wallet_enforced_when_given(self):
        ledger = _two_lot_ledger()
        ledger.add_buy(_tx("Buy", "1", "50000", datetime(2021, 3, 1, tzinfo=UTC), "Kraken", tx_id="kr"))
        sale = simulate_sale(
            Decimal("1"), Decimal("60000"), ledger, AccountingMethod.FIFO, wallet="Kraken", sale_date=SALE_DATE,
        )
        assert [d.lot_id for d in sale.lot_details] == ["kr"]

    def test_specific_id_preview(self):
        ledger = _two_lot_ledger()
        sale = simulate_sale(
            Decimal("1"), Decimal("40000"), ledger, AccountingMethod.SPECIFIC_ID,
            lot_selections=[LotSelection(lot_id="jun", amount_btc=Decimal("1"))], sale_date=SALE_DATE,
        )
        assert sale.cost_basis == Decimal("30000")
        assert ledger.get("jun").remaining_btc == Decimal("1")

    def test_defaults_sale_date_to_now(self):
        sale = simulate_sale(Decimal("1"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.FIFO)
        assert sale.sale_date.year >= 2024
        assert all(d.is_long_term for d in sale.lot_details)

    def test_zero_amount_returns_none(self):
        assert simulate_sale(Decimal("0"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.FIFO) is None

    def test_negative_amount_returns_none(self):
        assert simulate_sale(Decimal("-1"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.FIFO) is None

    def test_naive_sale_date_is_utc(self):
        sale = simulate_sale(
            Decimal("1"), Decimal("40000"), _two_lot_ledger(), AccountingMethod.FIFO,
            sale_date=datetime(2022, 1, 2),
        )
        assert sale.sale_date == datetime(2022, 1, 2, tzinfo=UTC)
        assert sale.lot_details[0].is_long_term
