"""Portfolio dashboard figures.

Monthly income, expenses and profit across the user's properties, the
loan positions (payments, insurance, capital still due) and the pro-rata
split of a tax amount over properties.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from src.domain.calculator.financial import (
    calculate_insurance,
    calculate_monthly_payment,
    calculate_remaining_balance,
    generate_amortization_schedule,
    loan_duration_months,
)
from src.domain.models.property import Loan, Property, Transaction

MAINTENANCE_PROVISION_RATE = 0.05

CASHFLOW_COLUMNS = ["income", "regular_expense", "loan_payment", "total_expense", "net"]


@dataclass
class DashboardStats:
    """Monthly portfolio figures, in €."""

    total_value: float = 0.0
    property_count: int = 0
    rented_count: int = 0
    occupancy_rate: float = 0.0
    monthly_income: float = 0.0
    potential_monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_loan_payment: float = 0.0
    fixed_expenses: float = 0.0
    potential_monthly_expenses: float = 0.0
    net_profit: float = 0.0
    potential_net_profit: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def property_fixed_expenses(prop: Property) -> float:
    """Monthly fixed cost of a property.

    Property tax spread over 12 months, charges, insurance, management fee
    when rented, and a maintenance provision on the rent.
    """
    management_fee = 0.0
    if prop.is_rented and prop.management_fee_percentage:
        management_fee = prop.rent * prop.management_fee_percentage / 100.0
    return (
        prop.property_tax / 12.0
        + prop.charges
        + prop.insurance
        + management_fee
        + prop.rent * MAINTENANCE_PROVISION_RATE
    )


def compute_dashboard_stats(
    properties: Iterable[Property],
    transactions: Iterable[Transaction],
    loans: Iterable[Loan],
    current_month: str | None = None,
) -> DashboardStats:
    """Compute the dashboard figures.

    Args:
        properties: User properties
        transactions: User transactions
        loans: User loans
        current_month: "YYYY-MM", defaults to today's month

    Returns:
        DashboardStats
    """
    props = list(properties)
    month = current_month or dt.date.today().strftime("%Y-%m")

    stats = DashboardStats(property_count=len(props))
    if not props:
        return stats

    rented = [p for p in props if p.is_rented]
    stats.rented_count = len(rented)
    stats.total_value = sum(p.value for p in props)
    stats.occupancy_rate = len(rented) / len(props) * 100.0
    stats.monthly_income = sum(p.rent for p in rented)
    stats.potential_monthly_income = sum(p.rent for p in props)

    stats.monthly_expenses = sum(
        t.amount for t in transactions
        if t.transaction_type == "expense" and t.accounting_month == month
    )
    stats.monthly_loan_payment = sum(loan.monthly_payment for loan in loans)
    stats.fixed_expenses = sum(property_fixed_expenses(p) for p in props)
    stats.potential_monthly_expenses = stats.fixed_expenses + stats.monthly_loan_payment

    stats.net_profit = stats.monthly_income - (stats.monthly_expenses + stats.monthly_loan_payment)
    stats.potential_net_profit = stats.potential_monthly_income - stats.potential_monthly_expenses
    return stats


@dataclass
class LoanPosition:
    """State of one loan at a given month."""

    loan_id: str
    name: str
    repayment_type: str
    monthly_payment: float
    monthly_insurance: float
    months_paid: int
    duration_months: int
    remaining_capital: float
    total_interest: float


@dataclass
class LoanSummary:
    """Loan figures of the dashboard, in €."""

    total_monthly_payment: float = 0.0
    total_remaining_capital: float = 0.0
    loans: list[LoanPosition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def loan_position(loan: Loan, as_of: dt.date) -> LoanPosition | None:
    """Payment, insurance and capital still due on `loan` at the month of `as_of`.

    Instalments are due monthly from the start month to the end month, both
    included. Loans missing dates, amount or rate give None.
    """
    if not (loan.start_date and loan.end_date and loan.amount > 0 and loan.interest_rate > 0):
        return None

    duration = loan_duration_months(loan.start_date, loan.end_date)
    if duration <= 0:
        return None
    months_paid = min(max(loan_duration_months(loan.start_date, as_of), 0), duration)
    monthly_rate = loan.interest_rate / 100.0 / 12.0

    if loan.repayment_type == "in fine":
        payment = loan.amount * monthly_rate
        remaining = loan.amount if months_paid < duration else 0.0
        total_interest = payment * duration
    elif loan.amortization_profile == "constant":
        principal = loan.amount / duration
        remaining = loan.amount - principal * months_paid
        payment = principal + remaining * monthly_rate if months_paid < duration else 0.0
        total_interest = loan.amount * monthly_rate * (duration + 1) / 2.0
    else:
        payment = calculate_monthly_payment(loan.amount, loan.interest_rate, duration)
        remaining = calculate_remaining_balance(loan.amount, loan.interest_rate, duration, months_paid)
        schedule = generate_amortization_schedule(loan.amount, loan.interest_rate, duration)
        total_interest = float(sum(schedule["interet"]))

    return LoanPosition(
        loan_id=loan.id,
        name=loan.name,
        repayment_type=loan.repayment_type,
        monthly_payment=payment,
        monthly_insurance=calculate_insurance(loan.amount, loan.insurance_rate),
        months_paid=months_paid,
        duration_months=duration,
        remaining_capital=max(remaining, 0.0),
        total_interest=total_interest,
    )


def loan_summary(loans: Iterable[Loan], as_of: dt.date | None = None) -> LoanSummary:
    """Monthly payments (insurance included) and capital still due over all loans."""
    today = as_of or dt.date.today()
    summary = LoanSummary()
    for loan in loans:
        position = loan_position(loan, today)
        if position is None:
            continue
        summary.loans.append(position)
        if position.months_paid < position.duration_months:
            summary.total_monthly_payment += position.monthly_payment + position.monthly_insurance
        summary.total_remaining_capital += position.remaining_capital
    return summary


def monthly_cashflow(transactions: Iterable[Transaction], loan_payment: float = 0.0) -> pd.DataFrame:
    """Income and expenses per accounting month.

    The same loan payment is applied to every month.

    Returns:
        DataFrame indexed by "YYYY-MM" (sorted) with columns
        income, regular_expense, loan_payment, total_expense, net
    """
    records = [
        {
            "month": t.accounting_month,
            "income": t.amount if t.transaction_type == "income" else 0.0,
            "regular_expense": 0.0 if t.transaction_type == "income" else t.amount,
        }
        for t in transactions
        if t.accounting_month
    ]
    if not records:
        return pd.DataFrame(columns=CASHFLOW_COLUMNS, index=pd.Index([], name="month"), dtype=float)

    df = pd.DataFrame(records).groupby("month").sum().sort_index()
    df["loan_payment"] = float(loan_payment)
    df["total_expense"] = df["regular_expense"] + df["loan_payment"]
    df["net"] = df["income"] - df["total_expense"]
    return df[CASHFLOW_COLUMNS]


def allocate_tax_by_property(rents: Mapping[str, float], total_tax: float) -> dict[str, float]:
    """Split a tax amount over properties pro rata to their annual rent.

    Largest-remainder rounding to the euro: every share is floored, then the
    missing euros go one by one to the largest fractional parts (first
    property on ties). Any sub-euro residue of `total_tax` goes to the
    largest-weight property. Shares sum to `total_tax` and are never
    negative for a non-negative tax. Without any rent the split is even.
    """
    if not rents:
        return {}

    ids = list(rents)
    weights = np.array([max(rents[i], 0.0) for i in ids], dtype=float)
    if weights.sum() <= 0:
        weights = np.ones(len(ids))

    quotas = weights / weights.sum() * total_tax
    shares = np.floor(quotas)
    missing = int(np.floor(total_tax - shares.sum() + 1e-9))
    order = np.argsort(-(quotas - shares), kind="stable")
    shares[order[:missing]] += 1
    shares[int(np.argmax(weights))] += total_tax - shares.sum()
    return {property_id: float(share) for property_id, share in zip(ids, shares)}
