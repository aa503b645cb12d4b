"""Financial calculation functions.

Loan payment, amortization and yearly interest calculations. Loan interest
and insurance are deductible charges under the real regime ("régime réel").
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import numpy_financial as npf

from src.domain.models.property import Loan


def calculate_monthly_payment(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
) -> float:
    """Calculate monthly loan payment (principal + interest only).

    Args:
        principal: Loan amount in €
        annual_rate_pct: Annual interest rate as percentage (e.g., 3.5 for 3.5%)
        duration_months: Loan term in months

    Returns:
        Monthly payment amount in €
    """
    if principal <= 0 or duration_months <= 0:
        return 0.0

    monthly_rate = (annual_rate_pct / 100.0) / 12.0

    if monthly_rate <= 0:
        return principal / duration_months

    return float(-npf.pmt(monthly_rate, duration_months, principal))


def calculate_insurance(
    principal: float,
    annual_insurance_pct: float,
) -> float:
    """Calculate monthly insurance premium.

    Args:
        principal: Initial loan amount in €
        annual_insurance_pct: Annual insurance rate as percentage

    Returns:
        Monthly insurance amount in €
    """
    if principal <= 0:
        return 0.0
    return (principal * (annual_insurance_pct / 100.0)) / 12.0


def generate_amortization_schedule(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
    annual_insurance_pct: float = 0.0,
) -> dict[str, Any]:
    """Generate a constant-annuity amortization schedule.

    Returns:
        Dict with parallel lists (mois, interet, principal, capital_restant_fin)
        plus pmt_pi, pmt_assur, pmt_total and nmois.
    """
    if principal <= 0 or duration_months <= 0:
        return {
            "mois": [],
            "interet": [],
            "principal": [],
            "capital_restant_fin": [],
            "pmt_pi": 0.0,
            "pmt_assur": 0.0,
            "pmt_total": 0.0,
            "nmois": 0,
        }

    monthly_rate = (annual_rate_pct / 100.0) / 12.0
    pmt_pi = calculate_monthly_payment(principal, annual_rate_pct, duration_months)
    pmt_ins = calculate_insurance(principal, annual_insurance_pct)

    interests, principals, balances = [], [], []
    balance = principal
    for _ in range(duration_months):
        interest = balance * monthly_rate
        principal_payment = pmt_pi - interest
        balance = max(0.0, balance - principal_payment)
        interests.append(round(interest, 2))
        principals.append(round(principal_payment, 2))
        balances.append(round(balance, 2))

    return {
        "mois": list(range(1, duration_months + 1)),
        "interet": interests,
        "principal": principals,
        "capital_restant_fin": balances,
        "pmt_pi": pmt_pi,
        "pmt_assur": pmt_ins,
        "pmt_total": pmt_pi + pmt_ins,
        "nmois": duration_months,
    }


def calculate_remaining_balance(
    principal: float,
    annual_rate_pct: float,
    duration_months: int,
    months_paid: int,
) -> float:
    """Calculate remaining loan balance after N months.

    Args:
        principal: Initial loan amount in €
        annual_rate_pct: Annual interest rate %
        duration_months: Original loan term in months
        months_paid: Number of months already paid

    Returns:
        Remaining balance in €
    """
    if months_paid >= duration_months:
        return 0.0

    if months_paid <= 0:
        return principal

    monthly_rate = (annual_rate_pct / 100.0) / 12.0

    if monthly_rate <= 0:
        return principal * (1 - months_paid / duration_months)

    # Balance = P * [(1+r)^n - (1+r)^p] / [(1+r)^n - 1]
    factor_n = (1 + monthly_rate) ** duration_months
    factor_p = (1 + monthly_rate) ** months_paid

    remaining = principal * (factor_n - factor_p) / (factor_n - 1)

    return max(0.0, remaining)


# --- Yearly interest (deductible charges) ---


@dataclass
class LoanInterestDetail:
    """Interest paid on one loan during one year."""

    loan_id: str
    loan_name: str
    repayment_type: str
    interest: float
    amount: float


@dataclass
class YearlyInterestRow:
    """Interest paid on all loans during one year."""

    year: int
    total_interest: float = 0.0
    details: list[LoanInterestDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Année": self.year,
            "Intérêts": self.total_interest,
            "Détails": [d.__dict__ for d in self.details],
        }


def loan_duration_months(start: date, end: date) -> int:
    """Number of monthly instalments between two dates, both months included."""
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


def _iter_months(start: date, count: int) -> Iterator[tuple[int, int]]:
    year, month = start.year, start.month
    for _ in range(count):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def _interest_for_year(loan: Loan, year: int) -> float:
    """Interest paid on a loan during a calendar year."""
    start, end = loan.start_date, loan.end_date
    capital = loan.amount
    rate_pct = loan.interest_rate

    if loan.repayment_type == "in fine":
        # Capital repaid at maturity, flat interest on the full amount
        months = 12
        if year == start.year:
            months -= start.month - 1
        if year == end.year:
            months = end.month if year != start.year else end.month - start.month + 1
        return capital * (rate_pct / 100.0) * (months / 12.0)

    total_months = loan_duration_months(start, end)
    if total_months <= 0:
        return 0.0

    monthly_rate = (rate_pct / 100.0) / 12.0
    if loan.amortization_profile == "constant":
        monthly_principal = capital / total_months
        payment = None
    else:
        monthly_principal = None
        payment = calculate_monthly_payment(capital, rate_pct, total_months)

    interest_in_year = 0.0
    balance = capital
    for y, _ in _iter_months(start, total_months):
        if y > year:
            break
        interest = balance * monthly_rate
        if y == year:
            interest_in_year += interest
        step = monthly_principal if monthly_principal is not None else payment - interest
        balance = max(0.0, balance - step)

    return interest_in_year


def compute_yearly_interests(loans: Iterable[Loan], start_year: int, end_year: int) -> list[YearlyInterestRow]:
    """Compute interest paid per loan and per year.

    Supports constant-annuity ("classique"), constant-principal ("constant")
    and bullet ("in fine") loans. Loans missing dates, amount or rate are
    skipped.

    Args:
        loans: Property loans
        start_year: First year to report
        end_year: Last year to report (inclusive)

    Returns:
        One YearlyInterestRow per year, in order
    """
    usable = [
        loan for loan in loans
        if loan.start_date and loan.end_date and loan.amount > 0 and loan.interest_rate > 0
    ]

    rows: list[YearlyInterestRow] = []
    for year in range(start_year, end_year + 1):
        row = YearlyInterestRow(year=year)
        for loan in usable:
            if year < loan.start_date.year or year > loan.end_date.year:
                continue
            interest = _interest_for_year(loan, year)
            row.details.append(LoanInterestDetail(
                loan_id=loan.id,
                loan_name=loan.name,
                repayment_type=loan.repayment_type,
                interest=interest,
                amount=loan.amount,
            ))
            row.total_interest += interest
        rows.append(row)
    return rows


def annual_loan_interest(loans: Iterable[Loan], year: int) -> float:
    """Total interest paid on all loans during one year."""
    return compute_yearly_interests(loans, year, year)[0].total_interest
