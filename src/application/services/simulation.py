"""Household tax simulation.

Combines salary income, property income and PER deductions into a full
income tax + social levy breakdown, with and without property income.
"""

from __future__ import annotations

from src.core.fiscal_parameters import FiscalParameters, load_fiscal_parameters
from src.core.logging import get_logger
from src.domain.calculator.tax import compute_income_tax, compute_social_levies, marginal_rate
from src.domain.models.simulation import RegimeFoncier, TaxCalculationResult, TaxSimulationInput

log = get_logger(__name__)


class TaxSimulationEngine:
    """Stateless tax simulation engine.

    Built for one fiscal year when `params` is given; otherwise the
    parameters are resolved from each input's `annee_parametres`.
    """

    def __init__(self, params: FiscalParameters | None = None):
        self.params = params

    @classmethod
    def for_year(cls, year: int | None = None) -> TaxSimulationEngine:
        """Engine bound to the parameters of a year (default year if None)."""
        return cls(load_fiscal_parameters(year))

    def parameters_for(self, data: TaxSimulationInput) -> FiscalParameters:
        if self.params is not None:
            return self.params
        return load_fiscal_parameters(data.annee_parametres)

    def simulate(self, data: TaxSimulationInput) -> TaxCalculationResult:
        """Run one simulation.

        Args:
            data: Validated household input

        Returns:
            Frozen TaxCalculationResult
        """
        p = self.parameters_for(data)
        parts = data.parts_quotient_familial
        couple = data.is_couple

        # Salary
        abattement = data.salaire_brut_annuel * p.salary_abatement_rate
        if p.salary_abatement_cap is not None:
            abattement = min(abattement, p.salary_abatement_cap)
        salaire_imposable = max(
            data.salaire_brut_annuel - abattement - data.versement_per_deductible, 0.0
        )

        # Property income
        loyers = data.loyers_percus_total
        if data.regime_foncier == RegimeFoncier.MICRO:
            if loyers > p.micro_foncier_ceiling:
                log.warning(
                    "micro_foncier_ceiling_exceeded",
                    loyers=loyers,
                    ceiling=p.micro_foncier_ceiling,
                )
            # Flat abatement replaces itemised charges
            frais_gestion = 0.0
            total_charges = loyers * p.micro_foncier_abatement_rate
        else:
            frais_gestion = loyers * data.pourcentage_gestion / 100.0
            total_charges = data.charges_foncieres_total + data.travaux_deja_effectues + frais_gestion

        revenu_foncier_net = loyers - total_charges
        deficit = max(0.0, -revenu_foncier_net)
        deficit_imputable = min(deficit, p.deficit_foncier_ceiling)
        deficit_reportable = deficit - deficit_imputable

        # Taxable bases
        revenus_sans_foncier = salaire_imposable + data.autres_revenus_imposables
        revenus_avec_foncier = revenus_sans_foncier + max(revenu_foncier_net, 0.0)
        if p.apply_deficit_offset and deficit_imputable > 0:
            revenus_avec_foncier = max(revenus_sans_foncier - deficit_imputable, 0.0)

        # Income tax for both scenarios
        ir_sans = compute_income_tax(revenus_sans_foncier, parts, p, couple)
        ir_avec = compute_income_tax(revenus_avec_foncier, parts, p, couple)
        ps_foncier = compute_social_levies(revenu_foncier_net, p.social_levy_rate)

        total_sans_foncier = ir_sans.net
        total_avec_foncier = ir_avec.net + ps_foncier

        denominator = salaire_imposable + max(revenu_foncier_net, 0.0)
        taux_effectif = total_avec_foncier / denominator if denominator > 0 else 0.0
        taux_effectif_sans_foncier = (
            ir_sans.net / revenus_sans_foncier if revenus_sans_foncier > 0 else 0.0
        )

        benefice_net = revenu_foncier_net - (ir_avec.net - ir_sans.net) - ps_foncier

        result = TaxCalculationResult(
            annee_parametres=p.year,
            salaire_brut_annuel=data.salaire_brut_annuel,
            abattement_salaire=abattement,
            versement_per_deductible=data.versement_per_deductible,
            salaire_imposable=salaire_imposable,
            autres_revenus_imposables=data.autres_revenus_imposables,
            parts_quotient_familial=parts,
            regime_foncier=data.regime_foncier,
            loyers_percus_total=loyers,
            charges_foncieres_total=data.charges_foncieres_total,
            travaux_deja_effectues=data.travaux_deja_effectues,
            frais_gestion=frais_gestion,
            total_charges=total_charges,
            revenu_foncier_net=revenu_foncier_net,
            deficit_imputable=deficit_imputable,
            deficit_reportable=deficit_reportable,
            revenus_sans_foncier=revenus_sans_foncier,
            revenus_avec_foncier=revenus_avec_foncier,
            tranche_marginale=marginal_rate(revenus_avec_foncier / parts, p.brackets),
            ir_brut_sans_foncier=ir_sans.gross,
            ir_brut_avec_foncier=ir_avec.gross,
            decote_sans_foncier=ir_sans.decote,
            decote_avec_foncier=ir_avec.decote,
            ir_sans_foncier=ir_sans.net,
            ir_avec_foncier=ir_avec.net,
            ps_foncier=ps_foncier,
            total_sans_foncier=total_sans_foncier,
            total_avec_foncier=total_avec_foncier,
            delta_impot=total_avec_foncier - total_sans_foncier,
            taux_effectif=taux_effectif,
            taux_effectif_sans_foncier=taux_effectif_sans_foncier,
            benefice_brut=revenu_foncier_net,
            benefice_net=benefice_net,
            autofill_from_db=data.autofill_from_db,
        )

        log.debug(
            "tax_simulation_completed",
            year=p.year,
            regime=data.regime_foncier.value,
            total_avec_foncier=round(total_avec_foncier, 2),
            benefice_net=round(benefice_net, 2),
        )
        return result


def simulate_taxes(
    data: TaxSimulationInput,
    params: FiscalParameters | None = None,
) -> TaxCalculationResult:
    """Convenience wrapper around TaxSimulationEngine.

    For repeated calls on the same year, build the engine once.
    """
    return TaxSimulationEngine(params).simulate(data)
