"""Tax simulation input and result models.

Field names follow the JSON payload of the simulation endpoint. Both models
are frozen: a result is recomputed on every form submission, never mutated.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, computed_field, field_validator, model_validator

from src.core.exceptions import InvalidInputError


class RegimeFoncier(str, Enum):
    """Property income tax regime."""

    REEL = "reel"
    MICRO = "micro"


class SituationFamiliale(str, Enum):
    CELIBATAIRE = "celibataire"
    COUPLE = "couple"


class TaxSimulationInput(BaseModel):
    """Household data submitted to the simulator."""

    # Household
    salaire_brut_annuel: float = Field(..., ge=0, description="Gross annual salary in €")
    parts_quotient_familial: float = Field(default=1.0, ge=1, description="Family quotient parts")
    situation_familiale: SituationFamiliale = Field(default=SituationFamiliale.CELIBATAIRE)
    versement_per_deductible: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("versement_per_deductible", "versement_PER_deductible"),
        description="Deductible PER contribution in €",
    )
    autres_revenus_imposables: float = Field(default=0.0, ge=0, description="Other taxable income in €")

    # Property income
    loyers_percus_total: float = Field(default=0.0, ge=0, description="Gross rents collected in €")
    charges_foncieres_total: float = Field(default=0.0, ge=0, description="Deductible property charges in €")
    travaux_deja_effectues: float = Field(default=0.0, ge=0, description="Works already incurred in €")
    pourcentage_gestion: float = Field(default=0.0, ge=0, le=100, description="Management fees, % of rents")
    regime_foncier: RegimeFoncier = Field(default=RegimeFoncier.REEL)

    # Options
    autofill_from_db: bool = Field(default=False, description="Take rents/charges from transactions")
    inclure_frais_gestion_autofill: bool = Field(default=True)
    annee_parametres: int | None = Field(default=None, description="Fiscal parameter year")

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "allow_inf_nan": False,
        "populate_by_name": True,
    }

    @field_validator(
        "salaire_brut_annuel",
        "parts_quotient_familial",
        "versement_per_deductible",
        "autres_revenus_imposables",
        "loyers_percus_total",
        "charges_foncieres_total",
        "travaux_deja_effectues",
        "pourcentage_gestion",
        mode="before",
    )
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        # JSON true/false would otherwise be coerced to 1.0/0.0
        if isinstance(value, bool):
            raise ValueError("expected a number, got a boolean")
        return value

    @model_validator(mode="after")
    def _check_couple_parts(self) -> TaxSimulationInput:
        if self.situation_familiale == SituationFamiliale.COUPLE and self.parts_quotient_familial < 2:
            raise ValueError("a couple has at least 2 family quotient parts")
        return self

    @property
    def is_couple(self) -> bool:
        return self.situation_familiale == SituationFamiliale.COUPLE

    @classmethod
    def from_payload(cls, payload: Any) -> TaxSimulationInput:
        """Validate a raw JSON payload.

        Raises:
            InvalidInputError: On missing, negative or non-numeric fields.
        """
        if not isinstance(payload, dict):
            raise InvalidInputError("payload", payload, "expected a JSON object")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "payload"
            raise InvalidInputError(field, first.get("input"), first.get("msg", "")) from e


class TaxCalculationResult(BaseModel):
    """Full breakdown of one tax simulation."""

    annee_parametres: int

    # Salary
    salaire_brut_annuel: float
    abattement_salaire: float
    versement_per_deductible: float
    salaire_imposable: float
    autres_revenus_imposables: float
    parts_quotient_familial: float

    # Property income
    regime_foncier: RegimeFoncier
    loyers_percus_total: float
    charges_foncieres_total: float
    travaux_deja_effectues: float
    frais_gestion: float
    total_charges: float
    revenu_foncier_net: float
    deficit_imputable: float
    deficit_reportable: float

    # Taxable bases
    revenus_sans_foncier: float
    revenus_avec_foncier: float
    tranche_marginale: float

    # Income tax
    ir_brut_sans_foncier: float
    ir_brut_avec_foncier: float
    decote_sans_foncier: float
    decote_avec_foncier: float
    ir_sans_foncier: float
    ir_avec_foncier: float

    # Social levies and totals
    ps_foncier: float
    total_sans_foncier: float
    total_avec_foncier: float
    delta_impot: float
    taux_effectif: float
    taux_effectif_sans_foncier: float

    # Net benefit
    benefice_brut: float
    benefice_net: float

    autofill_from_db: bool = False

    model_config = {"frozen": True}

    @computed_field
    @property
    def deficit_foncier(self) -> float:
        """Positive amount of property deficit, 0 when in surplus."""
        return max(0.0, -self.revenu_foncier_net)
