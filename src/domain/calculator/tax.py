"""Progressive income tax and social levy calculations.

Pure functions over a bracket table ("barème"). Inputs are validated by the
callers (API boundary for amounts, configuration loading for tables).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from src.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from src.core.fiscal_parameters import DecoteParameters, FiscalParameters


class TaxBracket(BaseModel):
    """One slice ("tranche") of the progressive income tax table."""

    lower_bound: float = Field(..., description="Start of the slice in €")
    upper_bound: float | None = Field(None, description="End of the slice in €, None when unbounded")
    rate: float = Field(..., description="Marginal rate as a fraction (0.30 for 30%)")

    model_config = {"frozen": True}

    @property
    def width(self) -> float:
        """Amount of income that fits in this slice."""
        if self.upper_bound is None:
            return math.inf
        return self.upper_bound - self.lower_bound

    def label(self) -> str:
        """Human readable label, e.g. '30% (28 797 - 82 341 €)'."""
        pct = f"{self.rate * 100:g}%"
        lower = f"{self.lower_bound:,.0f}".replace(",", " ")
        if self.upper_bound is None:
            return f"{pct} ({lower} € +)"
        upper = f"{self.upper_bound:,.0f}".replace(",", " ")
        return f"{pct} ({lower} - {upper} €)"


@dataclass(frozen=True)
class IncomeTaxBreakdown:
    """Income tax for one household scenario."""

    gross: float
    decote: float
    net: float
    quotient_capped: bool = False


def validate_brackets(brackets: Sequence[TaxBracket]) -> None:
    """Check the ordering invariants of a bracket table.

    Brackets must start at 0, be contiguous and ascending, end with a single
    unbounded slice, and carry non-decreasing rates within [0, 1].

    Raises:
        ConfigurationError: If any invariant is violated.
    """
    if not brackets:
        raise ConfigurationError("Bracket table is empty")

    if brackets[0].lower_bound != 0:
        raise ConfigurationError(
            f"First bracket must start at 0, got {brackets[0].lower_bound}"
        )

    previous: TaxBracket | None = None
    for i, bracket in enumerate(brackets):
        if not 0.0 <= bracket.rate <= 1.0:
            raise ConfigurationError(f"Bracket {i} has rate {bracket.rate} outside [0, 1]")

        is_last = i == len(brackets) - 1
        if bracket.upper_bound is None and not is_last:
            raise ConfigurationError(f"Bracket {i} is unbounded but is not the last one")
        if bracket.upper_bound is not None:
            if is_last:
                raise ConfigurationError("Last bracket must be unbounded")
            if bracket.upper_bound <= bracket.lower_bound:
                raise ConfigurationError(
                    f"Bracket {i} upper bound {bracket.upper_bound} "
                    f"is not above its lower bound {bracket.lower_bound}"
                )

        if previous is not None:
            if bracket.lower_bound != previous.upper_bound:
                raise ConfigurationError(
                    f"Bracket {i} starts at {bracket.lower_bound}, "
                    f"expected {previous.upper_bound} (contiguous table)"
                )
            if bracket.rate < previous.rate:
                raise ConfigurationError(
                    f"Bracket {i} rate {bracket.rate} is below previous rate {previous.rate}"
                )
        previous = bracket


def compute_bracket_tax(amount: float, brackets: Sequence[TaxBracket]) -> float:
    """Compute progressive tax on a taxable amount.

    Each bracket's rate applies only to the slice of income that falls
    within it.

    Args:
        amount: Taxable amount in € (>= 0, checked by the caller)
        brackets: Validated bracket table, ascending

    Returns:
        Total tax in €
    """
    remaining = amount
    tax = 0.0
    for bracket in brackets:
        if remaining <= 0:
            break
        taxed = min(remaining, bracket.width)
        tax += taxed * bracket.rate
        remaining -= taxed
    return tax


def bracket_breakdown(amount: float, brackets: Sequence[TaxBracket]) -> list[dict[str, float | str]]:
    """Slice-by-slice detail of compute_bracket_tax, for display."""
    rows: list[dict[str, float | str]] = []
    remaining = amount
    for bracket in brackets:
        if remaining <= 0:
            break
        taxed = min(remaining, bracket.width)
        rows.append({
            "tranche": bracket.label(),
            "taux": bracket.rate,
            "montant_imposable": taxed,
            "impot": taxed * bracket.rate,
        })
        remaining -= taxed
    return rows


def marginal_rate(amount: float, brackets: Sequence[TaxBracket]) -> float:
    """Rate of the bracket containing the amount (TMI)."""
    if amount <= 0:
        return 0.0
    for bracket in brackets:
        if bracket.upper_bound is None or amount <= bracket.upper_bound:
            return bracket.rate
    return brackets[-1].rate


def compute_social_levies(net_property_income: float, rate: float) -> float:
    """Prélèvements sociaux on net property income.

    Deficits never produce a negative levy or a rebate.
    """
    return max(0.0, net_property_income) * rate


def compute_decote(gross_tax: float, decote: DecoteParameters, couple: bool = False) -> float:
    """Décote: reduction granted when the gross tax is below a threshold.

    décote = forfait - gross × taux, floored at 0 and never above the tax.
    """
    seuil = decote.seuil_couple if couple else decote.seuil_celibataire
    forfait = decote.forfait_couple if couple else decote.forfait_celibataire
    if gross_tax <= 0 or gross_tax >= seuil:
        return 0.0
    return min(max(0.0, forfait - gross_tax * decote.taux), gross_tax)


def compute_income_tax(
    taxable_income: float,
    parts: float,
    params: FiscalParameters,
    couple: bool = False,
) -> IncomeTaxBreakdown:
    """Household income tax through the family quotient.

    The income is divided by the number of parts, taxed on the bracket
    table and multiplied back. The advantage over the base parts (1 single,
    2 couple) is capped per extra half part, then the décote applies.

    Args:
        taxable_income: Household taxable income in €
        parts: Number of family quotient parts (>= 1)
        params: Fiscal parameters of the year
        couple: Joint taxation (married / PACS)

    Returns:
        IncomeTaxBreakdown with gross tax, décote and net tax
    """
    if taxable_income <= 0:
        return IncomeTaxBreakdown(gross=0.0, decote=0.0, net=0.0)

    brackets = params.brackets
    base_parts = min(2.0 if couple else 1.0, parts)

    gross = compute_bracket_tax(taxable_income / parts, brackets) * parts
    capped = False

    if parts > base_parts:
        base_tax = compute_bracket_tax(taxable_income / base_parts, brackets) * base_parts
        max_benefit = params.quotient_familial_cap_per_half_part * (parts - base_parts) * 2
        if base_tax - gross > max_benefit:
            gross = base_tax - max_benefit
            capped = True

    decote = compute_decote(gross, params.decote, couple)
    return IncomeTaxBreakdown(gross=gross, decote=decote, net=gross - decote, quotient_capped=capped)
