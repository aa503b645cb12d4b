"""Unit tests for src.services.autofill module."""

import datetime as dt
import json

import pytest

from src.core.exceptions import DataSourceError
from src.domain.calculator.financial import annual_loan_interest
from src.domain.models.context import UserContext
from src.domain.models.property import Transaction
from src.services.autofill import (
    InMemoryTransactionSource,
    TransactionBatch,
    aggregate_fiscal_data,
    autofill_for_user,
    weighted_management_fee,
)


@pytest.fixture
def aggregated(sample_transactions, sample_properties, sample_catalogue, classification_table):
    types, categories = sample_catalogue
    return aggregate_fiscal_data(
        sample_transactions, sample_properties, classification_table, 2025,
        types=types, categories=categories,
    )


class TestAggregateFiscalData:
    """Tests for aggregate_fiscal_data function."""

    def test_rents(self, aggregated):
        assert aggregated.loyers_percus_total == pytest.approx(1900)

    def test_charges(self, aggregated):
        """Works (category keyword) and property tax (deductible type)."""
        assert aggregated.charges_foncieres_total == pytest.approx(1500)

    def test_unclassified_counted(self, aggregated):
        assert aggregated.unclassified_count == 1

    def test_other_years_and_negative_amounts_ignored(self, aggregated):
        ids = {t.id for t in aggregated.transactions}
        assert "tx7" not in ids
        assert "tx8" not in ids
        assert len(ids) == 5

    def test_weighted_management_fee(self, aggregated):
        assert aggregated.pourcentage_gestion == pytest.approx((1400 * 8 + 500 * 6) / 1900)

    def test_detail_rows(self, aggregated):
        rent_row = next(t for t in aggregated.transactions if t.id == "tx1")
        assert rent_row.category == "loyer"
        assert rent_row.property_name == "146A"
        assert rent_row.gestion_percentage == 8.0
        assert rent_row.frais_gestion == pytest.approx(56.0)

    def test_loan_interest_added(self, sample_transactions, sample_properties, sample_catalogue,
                                 classification_table, sample_loans):
        types, categories = sample_catalogue
        data = aggregate_fiscal_data(
            sample_transactions, sample_properties, classification_table, 2025,
            loans=sample_loans, types=types, categories=categories,
        )
        interest = annual_loan_interest(sample_loans, 2025)
        assert 3000 < interest < 3600
        assert data.loan_interest == pytest.approx(interest)
        assert data.charges_foncieres_total == pytest.approx(1500 + interest)

    def test_free_text_category(self, classification_table):
        tx = Transaction(id="x", amount=650, accounting_month="2025-06", category="loyer")
        data = aggregate_fiscal_data([tx], [], classification_table, 2025)
        assert data.loyers_percus_total == 650

    def test_no_rents_uses_default_fee(self, classification_table):
        data = aggregate_fiscal_data([], [], classification_table, 2025, default_management_fee_pct=7.0)
        assert data.pourcentage_gestion == 7.0
        assert data.loyers_percus_total == 0

    def test_input_update(self, aggregated):
        update = aggregated.as_input_update(include_management_fee=False)
        assert update["pourcentage_gestion"] == 0.0
        assert update["loyers_percus_total"] == pytest.approx(1900)

    def test_input_update_resets_works(self, aggregated):
        update = aggregated.as_input_update()
        assert update["travaux_deja_effectues"] == 0.0
        assert set(update) == {
            "loyers_percus_total", "charges_foncieres_total", "travaux_deja_effectues", "pourcentage_gestion",
        }


class TestWeightedManagementFee:
    """Tests for weighted_management_fee function."""

    def test_unknown_property_uses_default(self, sample_properties):
        props = {p.id: p for p in sample_properties}
        assert weighted_management_fee({None: 1000}, props, 6.0) == 6.0

    def test_zero_rent(self):
        assert weighted_management_fee({}, {}, 6.0) == 6.0


class TestTransactionSource:
    """Tests for the in-memory transaction source."""

    def test_fetch_filters_year(self, context, sample_transactions):
        source = InMemoryTransactionSource({context.user_id: TransactionBatch(transactions=sample_transactions)})
        batch = source.fetch(context, 2024)
        assert [t.id for t in batch.transactions] == ["tx7"]

    def test_other_user_sees_nothing(self, sample_transactions):
        source = InMemoryTransactionSource({"user-1": TransactionBatch(transactions=sample_transactions)})
        assert source.fetch(UserContext(user_id="user-2"), 2025).transactions == []

    def test_unauthenticated(self):
        with pytest.raises(DataSourceError):
            InMemoryTransactionSource().fetch(UserContext(user_id=""), 2025)

    def test_from_file(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({
            "transactions": [{"id": "a", "amount": 500, "accounting_month": "2025-01", "description": "Loyer"}],
            "properties": [{"id": "p", "name": "Studio", "rent": 500, "status": "rented"}],
        }), encoding="utf-8")
        source = InMemoryTransactionSource.from_file(path, "me")
        batch = source.fetch(UserContext(user_id="me"), 2025)
        assert batch.transactions[0].amount == 500
        assert batch.properties[0].is_rented

    def test_from_file_invalid(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"transactions": [{"amount": "abc"}]}), encoding="utf-8")
        with pytest.raises(DataSourceError):
            InMemoryTransactionSource.from_file(path, "me")


class TestAutofillForUser:
    """Tests for autofill_for_user function."""

    def test_no_source(self, context):
        with pytest.raises(DataSourceError, match="no transaction source"):
            autofill_for_user(context, 2025, None)

    def test_failing_source(self, context):
        class BrokenSource:
            def fetch(self, context, year):
                raise RuntimeError("connection reset")

        with pytest.raises(DataSourceError, match="connection reset"):
            autofill_for_user(context, 2025, BrokenSource())

    def test_aggregates_batch(self, context, sample_transactions, sample_properties, sample_catalogue,
                              classification_table):
        types, categories = sample_catalogue
        batch = TransactionBatch(sample_transactions, sample_properties, [], types, categories)
        source = InMemoryTransactionSource({context.user_id: batch})
        data = autofill_for_user(context, 2025, source, classification_table)
        assert data.loyers_percus_total == pytest.approx(1900)
        assert data.year == 2025
        assert isinstance(data.to_dict()["transactions"], list)

    def test_dates_serialised(self, context, classification_table):
        tx = Transaction(id="a", amount=100, date=dt.date(2025, 3, 1), description="Loyer")
        source = InMemoryTransactionSource({context.user_id: TransactionBatch(transactions=[tx])})
        data = autofill_for_user(context, 2025, source, classification_table)
        assert data.transactions[0].date == "2025-03-01"
