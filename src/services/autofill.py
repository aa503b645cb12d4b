"""Autofill of the simulation form from the user's bookkeeping.

Aggregates one fiscal year of transactions into rents, deductible charges
and a rent-weighted management fee percentage.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from src.core.exceptions import DataSourceError, SimulateurError
from src.core.logging import get_logger
from src.core.settings import get_settings
from src.domain.calculator.financial import annual_loan_interest
from src.domain.models.context import UserContext
from src.domain.models.property import Category, Loan, Property, Transaction, TransactionType
from src.services.classifier import ClassificationTable, TransactionCategory, load_classification_table

log = get_logger(__name__)


@dataclass
class TransactionBatch:
    """Everything the autofill needs for one user."""

    transactions: list[Transaction] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    types: list[TransactionType] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)


class TransactionSource(Protocol):
    """Read access to a user's bookkeeping data."""

    def fetch(self, context: UserContext, year: int) -> TransactionBatch:
        ...


class InMemoryTransactionSource:
    """TransactionSource backed by per-user batches held in memory."""

    def __init__(self, batches: dict[str, TransactionBatch] | None = None):
        self._batches = dict(batches or {})

    @classmethod
    def from_file(cls, path: Path, user_id: str) -> InMemoryTransactionSource:
        """Load a JSON export `{transactions, properties, loans, types, categories}` for one user.

        Raises:
            DataSourceError: If the file is unreadable or malformed.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            batch = TransactionBatch(
                transactions=[Transaction.model_validate(t) for t in raw.get("transactions", [])],
                properties=[Property.model_validate(p) for p in raw.get("properties", [])],
                loans=[Loan.model_validate(loan) for loan in raw.get("loans", [])],
                types=[TransactionType.model_validate(t) for t in raw.get("types", [])],
                categories=[Category.model_validate(c) for c in raw.get("categories", [])],
            )
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
            raise DataSourceError(f"Cannot load transactions from {path}: {e}") from e

        log.info("transaction_source_loaded", path=str(path), transactions=len(batch.transactions))
        return cls({user_id: batch})

    def add(self, user_id: str, batch: TransactionBatch) -> None:
        self._batches[user_id] = batch

    def fetch(self, context: UserContext, year: int) -> TransactionBatch:
        if not context.is_authenticated:
            raise DataSourceError("Unauthenticated user")
        batch = self._batches.get(context.user_id, TransactionBatch())
        return TransactionBatch(
            transactions=[t for t in batch.transactions if t.fiscal_year == year],
            properties=list(batch.properties),
            loans=list(batch.loans),
            types=list(batch.types),
            categories=list(batch.categories),
        )


@dataclass
class AutofillTransaction:
    """Detail row of a transaction retained by the autofill."""

    id: str
    amount: float
    description: str
    date: str
    category: str
    property_name: str
    gestion_percentage: float = 0.0
    frais_gestion: float = 0.0


@dataclass
class AutofillData:
    """Aggregated fiscal data for one year."""

    year: int
    loyers_percus_total: float = 0.0
    charges_foncieres_total: float = 0.0
    loan_interest: float = 0.0
    pourcentage_gestion: float = 6.0
    transactions: list[AutofillTransaction] = field(default_factory=list)
    unclassified_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def as_input_update(self, include_management_fee: bool = True) -> dict[str, Any]:
        """Fields to override on a TaxSimulationInput.

        Works recorded as transactions are already in the deductible charges,
        so the manually entered works amount is reset to 0.
        """
        return {
            "loyers_percus_total": self.loyers_percus_total,
            "charges_foncieres_total": self.charges_foncieres_total,
            "travaux_deja_effectues": 0.0,
            "pourcentage_gestion": self.pourcentage_gestion if include_management_fee else 0.0,
        }


def weighted_management_fee(
    rents_by_property: dict[str | None, float],
    properties: dict[str, Property],
    default_pct: float,
) -> float:
    """Management fee percentage weighted by each property's rents."""
    total_rent = sum(rents_by_property.values())
    if total_rent <= 0:
        return default_pct

    weighted = 0.0
    for property_id, rent in rents_by_property.items():
        prop = properties.get(property_id) if property_id else None
        pct = prop.management_fee_percentage if prop and prop.management_fee_percentage is not None else default_pct
        weighted += rent * pct
    return weighted / total_rent


def aggregate_fiscal_data(
    transactions: Iterable[Transaction],
    properties: Iterable[Property],
    table: ClassificationTable,
    year: int,
    loans: Iterable[Loan] = (),
    types: Iterable[TransactionType] = (),
    categories: Iterable[Category] = (),
    default_management_fee_pct: float | None = None,
) -> AutofillData:
    """Aggregate one year of transactions.

    Only positive amounts of `year` count. Loan interest for the year is
    added to the deductible charges.

    Args:
        transactions: User transactions (any year)
        properties: User properties, for names and management fees
        table: Keyword classification table
        year: Fiscal year
        loans: User loans, for deductible interest
        types: Transaction type catalogue
        categories: Category catalogue
        default_management_fee_pct: Fee for properties without one

    Returns:
        AutofillData
    """
    if default_management_fee_pct is None:
        default_management_fee_pct = get_settings().default_management_fee_pct

    props = {p.id: p for p in properties}
    types_by_id = {t.id: t for t in types}
    categories_by_id = {c.id: c for c in categories}

    data = AutofillData(year=year, pourcentage_gestion=default_management_fee_pct)
    rents_by_property: dict[str | None, float] = defaultdict(float)

    for tx in transactions:
        if tx.fiscal_year != year or tx.amount <= 0:
            continue

        tx_type = types_by_id.get(tx.type) if tx.type else None
        category_id = tx.category or (tx_type.category_id if tx_type else None)
        category = None
        if category_id:
            # Unknown ids are free-text category names ("loyer")
            category = categories_by_id.get(category_id) or Category(id=category_id, name=category_id)

        kind = table.classify(tx, tx_type, category)
        if kind == TransactionCategory.NON_CLASSE:
            data.unclassified_count += 1
            continue

        prop = props.get(tx.property_id) if tx.property_id else None
        row = AutofillTransaction(
            id=tx.id,
            amount=tx.amount,
            description=tx.description,
            date=tx.date.isoformat() if tx.date else tx.accounting_month,
            category=kind.value,
            property_name=prop.name if prop else "Propriété inconnue",
        )

        if kind == TransactionCategory.LOYER:
            data.loyers_percus_total += tx.amount
            rents_by_property[tx.property_id] += tx.amount
            pct = (
                prop.management_fee_percentage
                if prop and prop.management_fee_percentage is not None
                else default_management_fee_pct
            )
            row.gestion_percentage = pct
            row.frais_gestion = tx.amount * pct / 100.0
        else:
            data.charges_foncieres_total += tx.amount

        data.transactions.append(row)

    data.loan_interest = annual_loan_interest(loans, year)
    data.charges_foncieres_total += data.loan_interest
    data.pourcentage_gestion = weighted_management_fee(rents_by_property, props, default_management_fee_pct)

    log.info(
        "fiscal_data_aggregated",
        year=year,
        loyers=round(data.loyers_percus_total, 2),
        charges=round(data.charges_foncieres_total, 2),
        retained=len(data.transactions),
        unclassified=data.unclassified_count,
    )
    return data


def autofill_for_user(
    context: UserContext,
    year: int,
    source: TransactionSource | None,
    table: ClassificationTable | None = None,
) -> AutofillData:
    """Fetch a user's bookkeeping and aggregate it.

    Raises:
        DataSourceError: If no source is configured or the fetch fails.
    """
    if source is None:
        raise DataSourceError("Autofill requested but no transaction source is configured")

    try:
        batch = source.fetch(context, year)
    except SimulateurError:
        raise
    except Exception as e:
        log.error("transaction_fetch_failed", user_id=context.user_id, year=year, error=str(e))
        raise DataSourceError(f"Cannot fetch transactions: {e}") from e

    return aggregate_fiscal_data(
        batch.transactions,
        batch.properties,
        table or load_classification_table(),
        year,
        loans=batch.loans,
        types=batch.types,
        categories=batch.categories,
    )
