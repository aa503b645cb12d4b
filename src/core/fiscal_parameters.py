"""Yearly fiscal parameters.

Tax law constants (bracket table, social levy rate, abatements, PER and
deficit ceilings, décote) change every year. They live in a JSON data file,
are loaded into frozen pydantic models and validated once at load time.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from src.core.exceptions import ConfigurationError, FiscalYearNotFoundError
from src.core.logging import get_logger
from src.core.settings import get_settings
from src.domain.calculator.tax import TaxBracket, validate_brackets

log = get_logger(__name__)


class DecoteParameters(BaseModel):
    """Décote thresholds and lump sums."""

    seuil_celibataire: float = Field(..., ge=0)
    seuil_couple: float = Field(..., ge=0)
    forfait_celibataire: float = Field(..., ge=0)
    forfait_couple: float = Field(..., ge=0)
    taux: float = Field(..., ge=0, le=1)

    model_config = {"frozen": True}


class FiscalParameters(BaseModel):
    """All the statutory constants used by one simulation year."""

    year: int
    brackets: list[TaxBracket]

    # Rates
    social_levy_rate: float = Field(..., ge=0, le=1, description="Prélèvements sociaux")
    salary_abatement_rate: float = Field(..., ge=0, le=1, description="Abattement forfaitaire sur salaires")
    salary_abatement_cap: float | None = Field(None, ge=0, description="Plafond de l'abattement, None = pas de plafond")
    micro_foncier_abatement_rate: float = Field(..., ge=0, le=1)

    # Property income
    micro_foncier_ceiling: float = Field(..., ge=0, description="Loyers max pour le micro-foncier")
    deficit_foncier_ceiling: float = Field(..., ge=0, description="Déficit imputable sur le revenu global")
    apply_deficit_offset: bool = Field(default=False, description="Impute the deficit on the global income")

    # PER
    pass_annuel: float = Field(..., gt=0, description="Plafond annuel de la sécurité sociale")
    per_ceiling_rate: float = Field(..., ge=0, le=1)
    per_ceiling_floor: float = Field(..., ge=0)
    per_ceiling_cap: float = Field(..., ge=0)
    per_carryover_years: int = Field(default=3, ge=0, le=10)

    # Household
    quotient_familial_cap_per_half_part: float = Field(..., ge=0)
    decote: DecoteParameters

    model_config = {"frozen": True}

    def to_config_payload(self) -> dict[str, Any]:
        """Public view of the parameters (tax config endpoint)."""
        return {
            "year": self.year,
            "tax_brackets": [
                {"min": b.lower_bound, "max": b.upper_bound, "rate": b.rate}
                for b in self.brackets
            ],
            "social_security_rate": self.social_levy_rate,
            "abattement_rate": self.salary_abatement_rate,
            "micro_foncier_abatement_rate": self.micro_foncier_abatement_rate,
            "deficit_foncier_ceiling": self.deficit_foncier_ceiling,
            "per_ceiling": {
                "rate": self.per_ceiling_rate,
                "floor": self.per_ceiling_floor,
                "cap": self.per_ceiling_cap,
                "carryover_years": self.per_carryover_years,
            },
            "decote": self.decote.model_dump(),
        }


def parse_fiscal_table(raw: dict[str, Any]) -> dict[int, FiscalParameters]:
    """Build and validate the year -> parameters table from raw JSON data.

    Raises:
        ConfigurationError: If a year entry is malformed or its brackets are invalid.
    """
    table: dict[int, FiscalParameters] = {}
    for key, data in raw.items():
        try:
            year = int(key)
        except ValueError as e:
            raise ConfigurationError(f"Invalid fiscal year key {key!r}") from e

        try:
            params = FiscalParameters(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid fiscal parameters for {year}: {e}") from e

        if params.year != year:
            raise ConfigurationError(f"Fiscal parameters keyed {year} declare year {params.year}")
        if params.per_ceiling_floor > params.per_ceiling_cap:
            raise ConfigurationError(f"PER ceiling floor above cap for {year}")

        validate_brackets(params.brackets)
        table[year] = params

    if not table:
        raise ConfigurationError("Fiscal parameters file defines no year")
    return table


@lru_cache(maxsize=8)
def _load_table(path: str) -> dict[int, FiscalParameters]:
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read fiscal parameters from {path}: {e}") from e

    table = parse_fiscal_table(raw)
    log.info("fiscal_parameters_loaded", path=path, years=sorted(table))
    return table


def available_years(path: Path | None = None) -> list[int]:
    """Years defined in the fiscal parameters file."""
    source = path or get_settings().fiscal_parameters_path
    return sorted(_load_table(str(source)))


def load_fiscal_parameters(year: int | None = None, path: Path | None = None) -> FiscalParameters:
    """Get the validated fiscal parameters for a year.

    Args:
        year: Parameter year, defaults to settings.default_fiscal_year
        path: JSON file, defaults to settings.fiscal_parameters_path

    Raises:
        FiscalYearNotFoundError: If the year is not defined.
        ConfigurationError: If the file is unreadable or invalid.
    """
    settings = get_settings()
    source = path or settings.fiscal_parameters_path
    table = _load_table(str(source))
    target = year if year is not None else settings.default_fiscal_year
    if target not in table:
        raise FiscalYearNotFoundError(target, sorted(table))
    return table[target]


def tax_config_payload(year: int | None = None) -> dict[str, Any]:
    """Public tax configuration for a year."""
    return load_fiscal_parameters(year).to_config_payload()
