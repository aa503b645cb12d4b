"""Unit tests for src.application.services.simulation module."""

import pytest

from src.application.services.simulation import TaxSimulationEngine, simulate_taxes
from src.domain.models.simulation import RegimeFoncier


class TestSalaryOnly:
    """Household without property income."""

    def test_reference_example(self, engine, make_input):
        result = engine.simulate(make_input(salaire_brut_annuel=48000))

        assert result.abattement_salaire == pytest.approx(4800)
        assert result.salaire_imposable == pytest.approx(43200)
        assert result.ir_sans_foncier == pytest.approx(6246.23, abs=0.01)
        assert result.revenu_foncier_net == 0
        assert result.ps_foncier == 0
        assert result.benefice_net == 0
        assert result.delta_impot == pytest.approx(0)
        assert result.taux_effectif == pytest.approx(6246.23 / 43200, abs=1e-6)
        assert result.taux_effectif_sans_foncier == pytest.approx(result.taux_effectif)

    def test_per_reduces_taxable_salary(self, engine, make_input):
        result = engine.simulate(make_input(versement_per_deductible=3000))
        assert result.salaire_imposable == pytest.approx(50000 - 5000 - 3000)

    def test_taxable_salary_floored_at_zero(self, engine, make_input):
        result = engine.simulate(make_input(salaire_brut_annuel=10000, versement_per_deductible=20000))
        assert result.salaire_imposable == 0
        assert result.ir_sans_foncier == 0

    def test_other_income_is_taxed(self, engine, make_input):
        base = engine.simulate(make_input())
        more = engine.simulate(make_input(autres_revenus_imposables=5000))
        assert more.revenus_sans_foncier == pytest.approx(base.revenus_sans_foncier + 5000)
        assert more.ir_sans_foncier > base.ir_sans_foncier

    def test_zero_income_zero_rate(self, engine, make_input):
        result = engine.simulate(make_input(salaire_brut_annuel=0))
        assert result.taux_effectif == 0.0
        assert result.taux_effectif_sans_foncier == 0.0
        assert result.total_avec_foncier == 0.0


class TestRealRegime:
    """Property income under the real regime."""

    def test_surplus(self, engine, make_input):
        result = engine.simulate(make_input(loyers_percus_total=12000, charges_foncieres_total=2000))

        assert result.revenu_foncier_net == pytest.approx(10000)
        assert result.revenus_avec_foncier == pytest.approx(55000)
        assert result.ir_sans_foncier == pytest.approx(6786.23, abs=0.01)
        assert result.ir_avec_foncier == pytest.approx(9786.23, abs=0.01)
        assert result.ps_foncier == pytest.approx(1720)
        assert result.total_avec_foncier == pytest.approx(11506.23, abs=0.01)
        assert result.delta_impot == pytest.approx(4720, abs=0.01)
        assert result.benefice_brut == pytest.approx(10000)
        assert result.benefice_net == pytest.approx(5280, abs=0.01)
        assert result.tranche_marginale == 0.30

    def test_management_fees(self, engine, make_input):
        result = engine.simulate(make_input(
            loyers_percus_total=10000,
            charges_foncieres_total=1000,
            travaux_deja_effectues=500,
            pourcentage_gestion=6,
        ))
        assert result.frais_gestion == pytest.approx(600)
        assert result.total_charges == pytest.approx(2100)
        assert result.revenu_foncier_net == pytest.approx(7900)

    def test_deficit_reference_example(self, engine, make_input):
        result = engine.simulate(make_input(loyers_percus_total=25000, charges_foncieres_total=30000))

        assert result.revenu_foncier_net == pytest.approx(-5000)
        assert result.deficit_foncier == pytest.approx(5000)
        assert result.ps_foncier == 0
        assert result.revenus_avec_foncier == pytest.approx(result.revenus_sans_foncier)
        assert result.ir_avec_foncier == pytest.approx(result.ir_sans_foncier)
        assert result.deficit_imputable == pytest.approx(5000)
        assert result.deficit_reportable == 0
        assert result.benefice_net == pytest.approx(-5000)

    def test_deficit_above_ceiling(self, engine, make_input):
        result = engine.simulate(make_input(loyers_percus_total=10000, charges_foncieres_total=40000))
        assert result.deficit_imputable == pytest.approx(10700)
        assert result.deficit_reportable == pytest.approx(19300)

    def test_deficit_offset_option(self, params, make_input):
        engine = TaxSimulationEngine(params.model_copy(update={"apply_deficit_offset": True}))
        result = engine.simulate(make_input(loyers_percus_total=25000, charges_foncieres_total=30000))
        assert result.revenus_avec_foncier == pytest.approx(result.revenus_sans_foncier - 5000)
        assert result.ir_avec_foncier < result.ir_sans_foncier


class TestMicroRegime:
    """Flat 30 % abatement."""

    def test_flat_abatement(self, engine, make_input):
        result = engine.simulate(make_input(
            loyers_percus_total=10000,
            charges_foncieres_total=5000,
            pourcentage_gestion=8,
            regime_foncier=RegimeFoncier.MICRO,
        ))
        assert result.revenu_foncier_net == pytest.approx(7000)
        assert result.total_charges == pytest.approx(3000)
        assert result.frais_gestion == 0
        assert result.ps_foncier == pytest.approx(7000 * 0.172)

    def test_above_ceiling_still_computed(self, engine, make_input):
        result = engine.simulate(make_input(loyers_percus_total=20000, regime_foncier="micro"))
        assert result.revenu_foncier_net == pytest.approx(14000)


class TestEngineParameters:
    """Parameter year resolution."""

    def test_year_from_input(self, make_input):
        result = TaxSimulationEngine().simulate(make_input(annee_parametres=2024))
        assert result.annee_parametres == 2024

    def test_bound_engine_ignores_input_year(self, engine, make_input):
        result = engine.simulate(make_input(annee_parametres=2024))
        assert result.annee_parametres == 2025

    def test_for_year(self):
        assert TaxSimulationEngine.for_year(2024).params.year == 2024

    def test_simulate_taxes_wrapper(self, params, engine, make_input):
        data = make_input(loyers_percus_total=8000)
        assert simulate_taxes(data, params) == engine.simulate(data)

    def test_couple(self, engine, make_input):
        result = engine.simulate(make_input(
            salaire_brut_annuel=100000,
            situation_familiale="couple",
            parts_quotient_familial=2,
        ))
        assert result.ir_sans_foncier == pytest.approx(13572.46, abs=0.01)

    def test_result_is_frozen(self, engine, make_input):
        result = engine.simulate(make_input())
        with pytest.raises(Exception):
            result.benefice_net = 1.0
