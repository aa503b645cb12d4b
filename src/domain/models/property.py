"""Property, loan and transaction data models.

Rows as supplied by the hosted data store, already filtered to the
authenticated user.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field, computed_field


class Property(BaseModel):
    """A rental property ("bien")."""

    id: str
    name: str = Field(default="", description="Display name")
    value: float = Field(default=0.0, ge=0, description="Estimated value in €")
    rent: float = Field(default=0.0, ge=0, description="Monthly rent in €")
    status: str = Field(default="vacant", description="rented or vacant")
    property_tax: float = Field(default=0.0, ge=0, description="Annual taxe foncière in €")
    charges: float = Field(default=0.0, ge=0, description="Monthly charges in €")
    insurance: float = Field(default=0.0, ge=0, description="Monthly insurance in €")
    management_fee_percentage: float | None = Field(None, ge=0, le=100)

    model_config = {
        "extra": "allow",
    }

    @computed_field
    @property
    def is_rented(self) -> bool:
        return self.status == "rented"


class Loan(BaseModel):
    """A property loan."""

    id: str
    name: str = ""
    property_id: str | None = None
    amount: float = Field(default=0.0, ge=0, description="Borrowed capital in €")
    interest_rate: float = Field(default=0.0, ge=0, description="Annual interest rate %")
    insurance_rate: float = Field(default=0.0, ge=0, description="Annual insurance rate %")
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    repayment_type: Literal["amortissable", "in fine"] = "amortissable"
    amortization_profile: Literal["classique", "constant"] = "classique"
    monthly_payment: float = Field(default=0.0, ge=0, description="Monthly payment in €, insurance included")

    model_config = {
        "extra": "allow",
    }


class TransactionType(BaseModel):
    """Catalogue entry describing a kind of transaction."""

    id: str
    name: str
    category_id: str | None = None
    deductible: bool = False


class Category(BaseModel):
    id: str
    name: str


class Transaction(BaseModel):
    """A bookkeeping line attached to a property."""

    id: str = ""
    property_id: str | None = None
    amount: float = 0.0
    date: dt.date | None = None
    accounting_month: str = Field(default="", description="YYYY-MM")
    description: str = ""
    type: str | None = Field(None, description="TransactionType id")
    category: str | None = Field(None, description="Category id")
    transaction_type: str = Field(default="expense", description="income or expense")
    platform: str = ""
    reservation_ref: str = ""
    guest_name: str = ""

    model_config = {
        "extra": "allow",
    }

    @property
    def fiscal_year(self) -> int | None:
        """Year the transaction belongs to (accounting month first, then date)."""
        if self.accounting_month[:4].isdigit():
            return int(self.accounting_month[:4])
        if self.date is not None:
            return self.date.year
        return None
