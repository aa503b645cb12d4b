"""Pytest fixtures for simulateur_impots tests."""

import datetime as dt
import os
import sys

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.application.services.simulation import TaxSimulationEngine
from src.core.fiscal_parameters import load_fiscal_parameters
from src.domain.models.context import UserContext
from src.domain.models.property import Category, Loan, Property, Transaction, TransactionType
from src.domain.models.simulation import TaxSimulationInput
from src.services.classifier import ClassificationTable


@pytest.fixture
def params():
    """2025 fiscal parameters."""
    return load_fiscal_parameters(2025)


@pytest.fixture
def brackets(params):
    return params.brackets


@pytest.fixture
def engine(params):
    return TaxSimulationEngine(params)


@pytest.fixture
def make_input():
    """Factory for simulation inputs with sensible defaults."""
    def _make(**overrides):
        data = {
            "salaire_brut_annuel": 50000.0,
            "parts_quotient_familial": 1.0,
        }
        data.update(overrides)
        return TaxSimulationInput(**data)
    return _make


@pytest.fixture
def context():
    return UserContext(user_id="user-1", token="token-abc")


@pytest.fixture
def classification_table():
    return ClassificationTable.from_dict({
        "loyer": ["loyer", "revenu", "mensuel"],
        "charge_deductible": ["charge", "travaux", "entretien", "réparation", "frais"],
    })


@pytest.fixture
def sample_properties():
    return [
        Property(id="p1", name="146A", value=200000, rent=700, status="rented",
                 property_tax=1200, charges=50, insurance=15, management_fee_percentage=8.0),
        Property(id="p2", name="22B", value=120000, rent=500, status="vacant",
                 property_tax=600, charges=30, insurance=10),
    ]


@pytest.fixture
def sample_catalogue():
    """(types, categories) catalogue."""
    categories = [
        Category(id="cat-rev", name="Revenus locatifs"),
        Category(id="cat-trv", name="Travaux"),
        Category(id="cat-div", name="Divers"),
    ]
    types = [
        TransactionType(id="t-loyer", name="Loyer", category_id="cat-rev"),
        TransactionType(id="t-plomb", name="Plomberie", category_id="cat-trv"),
        TransactionType(id="t-tf", name="Taxe foncière", category_id="cat-div", deductible=True),
        TransactionType(id="t-perso", name="Achat personnel", category_id="cat-div"),
    ]
    return types, categories


@pytest.fixture
def sample_transactions():
    return [
        Transaction(id="tx1", property_id="p1", amount=700, date=dt.date(2025, 1, 5),
                    accounting_month="2025-01", type="t-loyer", transaction_type="income"),
        Transaction(id="tx2", property_id="p1", amount=700, date=dt.date(2025, 2, 5),
                    accounting_month="2025-02", type="t-loyer", transaction_type="income"),
        Transaction(id="tx3", property_id="p2", amount=500, date=dt.date(2025, 2, 7),
                    accounting_month="2025-02", description="Loyer février", transaction_type="income"),
        Transaction(id="tx4", property_id="p1", amount=300, date=dt.date(2025, 3, 1),
                    accounting_month="2025-03", type="t-plomb", transaction_type="expense"),
        Transaction(id="tx5", property_id="p1", amount=1200, date=dt.date(2025, 10, 15),
                    accounting_month="2025-10", type="t-tf", transaction_type="expense"),
        Transaction(id="tx6", property_id="p2", amount=80, date=dt.date(2025, 4, 2),
                    accounting_month="2025-04", type="t-perso", transaction_type="expense"),
        Transaction(id="tx7", property_id="p1", amount=700, date=dt.date(2024, 12, 5),
                    accounting_month="2024-12", type="t-loyer", transaction_type="income"),
        Transaction(id="tx8", property_id="p1", amount=-50, date=dt.date(2025, 5, 5),
                    accounting_month="2025-05", description="Remboursement charges", transaction_type="expense"),
    ]


@pytest.fixture
def sample_loans():
    return [
        Loan(id="l1", name="Prêt 146A", property_id="p1", amount=120000, interest_rate=3.0,
             insurance_rate=0.3, start_date=dt.date(2023, 1, 1), end_date=dt.date(2042, 12, 1),
             monthly_payment=700),
    ]
