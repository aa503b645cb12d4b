"""Unit tests for the simulation input and recommendation models."""

import pytest
from pydantic import ValidationError

from src.core.exceptions import InvalidInputError
from src.domain.models.context import UserContext
from src.domain.models.property import Transaction
from src.domain.models.recommendation import RecommendationOverrides
from src.domain.models.simulation import RegimeFoncier, TaxSimulationInput


class TestTaxSimulationInput:
    """Tests for TaxSimulationInput validation."""

    def test_defaults(self):
        data = TaxSimulationInput(salaire_brut_annuel=30000)
        assert data.parts_quotient_familial == 1.0
        assert data.regime_foncier == RegimeFoncier.REEL
        assert data.autofill_from_db is False
        assert data.inclure_frais_gestion_autofill is True

    def test_per_alias(self):
        data = TaxSimulationInput.model_validate(
            {"salaire_brut_annuel": 30000, "versement_PER_deductible": 2000}
        )
        assert data.versement_per_deductible == 2000

    def test_couple_needs_two_parts(self):
        with pytest.raises(ValidationError):
            TaxSimulationInput(salaire_brut_annuel=30000, situation_familiale="couple")
        data = TaxSimulationInput(salaire_brut_annuel=30000, situation_familiale="couple",
                                  parts_quotient_familial=2)
        assert data.is_couple

    def test_frozen(self):
        data = TaxSimulationInput(salaire_brut_annuel=30000)
        with pytest.raises(ValidationError):
            data.salaire_brut_annuel = 1

    def test_extra_fields_ignored(self):
        data = TaxSimulationInput.from_payload({"salaire_brut_annuel": 1, "foo": "bar"})
        assert not hasattr(data, "foo")


class TestFromPayload:
    """Tests for TaxSimulationInput.from_payload error mapping."""

    def test_missing_salary(self):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload({})
        assert exc.value.field == "salaire_brut_annuel"

    def test_negative_amount(self):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload({"salaire_brut_annuel": 1, "loyers_percus_total": -5})
        assert exc.value.field == "loyers_percus_total"
        assert exc.value.value == -5

    def test_non_numeric(self):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload({"salaire_brut_annuel": "beaucoup"})
        assert exc.value.field == "salaire_brut_annuel"

    @pytest.mark.parametrize("value", [True, False])
    def test_boolean_amount(self, value):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload({"salaire_brut_annuel": value})
        assert exc.value.field == "salaire_brut_annuel"
        assert exc.value.value is value

    def test_not_a_dict(self):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload([1, 2])
        assert exc.value.field == "payload"

    def test_unknown_regime(self):
        with pytest.raises(InvalidInputError) as exc:
            TaxSimulationInput.from_payload({"salaire_brut_annuel": 1, "regime_foncier": "lmnp"})
        assert exc.value.field == "regime_foncier"


class TestOtherModels:
    """Tests for overrides, user context and transactions."""

    def test_overrides_reject_negative(self):
        with pytest.raises(ValidationError):
            RecommendationOverrides(per_additional_contribution=-1)

    def test_overrides_defaults(self):
        overrides = RecommendationOverrides()
        assert overrides.per_additional_contribution is None
        assert overrides.use_per_carryover is False

    def test_context(self):
        assert UserContext("u", "t").is_authenticated
        assert UserContext("u").is_authenticated
        assert not UserContext("", "t").is_authenticated

    @pytest.mark.parametrize("month,date,expected", [
        ("2025-03", None, 2025),
        ("", "2024-06-01", 2024),
        ("", None, None),
    ])
    def test_fiscal_year(self, month, date, expected):
        assert Transaction(accounting_month=month, date=date).fiscal_year == expected
