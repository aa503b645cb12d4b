"""Tax optimisation recommendations.

Two levers are evaluated from a simulation result:
- an additional PER contribution, valued at the marginal rate;
- additional deductible works, valued by re-running the engine.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.application.services.simulation import TaxSimulationEngine
from src.core.fiscal_parameters import FiscalParameters
from src.core.logging import get_logger
from src.domain.calculator.tax import marginal_rate
from src.domain.models.recommendation import (
    Recommendation,
    RecommendationOverrides,
    RecommendationType,
)
from src.domain.models.simulation import RegimeFoncier, TaxCalculationResult, TaxSimulationInput

log = get_logger(__name__)


def per_ceiling(taxable_salary: float, params: FiscalParameters, use_carryover: bool = False) -> float:
    """Deductible PER ceiling for a taxable salary.

    10 % of the taxable salary, clamped between the PASS-based floor and cap.
    With carry-over, the unused ceilings of the previous years are added.
    """
    base = min(max(taxable_salary * params.per_ceiling_rate, params.per_ceiling_floor), params.per_ceiling_cap)
    if use_carryover:
        return base * (1 + params.per_carryover_years)
    return base


def per_recommendation(
    result: TaxCalculationResult,
    data: TaxSimulationInput,
    params: FiscalParameters,
    overrides: RecommendationOverrides,
) -> Recommendation:
    rate = marginal_rate(result.salaire_imposable / result.parts_quotient_familial, params.brackets)
    ceiling = per_ceiling(result.salaire_imposable, params, overrides.use_per_carryover)
    current = data.versement_per_deductible
    headroom = max(ceiling - current, 0.0)

    proposed = overrides.per_additional_contribution
    if proposed is None:
        proposed = headroom
    optimal = min(headroom, proposed)

    savings = optimal * rate
    return Recommendation(
        type=RecommendationType.PER,
        label="Versement PER complémentaire",
        current=current,
        optimal=optimal,
        potential_savings=savings,
        ratio=savings / optimal if optimal > 0 else 0.0,
        details={
            "marginal_rate": rate,
            "ceiling": ceiling,
            "headroom": headroom,
            "proposed": proposed,
            "carryover": overrides.use_per_carryover,
        },
    )


def _works_scenarios(
    result: TaxCalculationResult,
    params: FiscalParameters,
    overrides: RecommendationOverrides,
) -> list[tuple[str, str, float]]:
    break_even = max(result.revenu_foncier_net, 0.0)
    scenarios = [
        ("break_even", "Travaux : déficit nul", break_even),
        ("max", "Travaux : optimisation max", break_even + params.deficit_foncier_ceiling),
    ]
    if overrides.works_amount is not None:
        scenarios.append(("custom", "Travaux : montant personnalisé", overrides.works_amount))
    return scenarios


def works_recommendations(
    result: TaxCalculationResult,
    data: TaxSimulationInput,
    engine: TaxSimulationEngine,
    params: FiscalParameters,
    overrides: RecommendationOverrides,
) -> list[Recommendation]:
    """One recommendation per works scenario.

    Each saving is the exact difference between two full simulations,
    without and with the extra deductible charge.
    """
    current = data.charges_foncieres_total + data.travaux_deja_effectues
    base = engine.simulate(data)

    recommendations = []
    for scenario, label, amount in _works_scenarios(result, params, overrides):
        with_works = engine.simulate(
            data.model_copy(update={"charges_foncieres_total": data.charges_foncieres_total + amount})
        )
        savings = base.total_avec_foncier - with_works.total_avec_foncier
        recommendations.append(
            Recommendation(
                type=RecommendationType.WORKS,
                label=label,
                current=current,
                optimal=amount,
                potential_savings=savings,
                ratio=savings / amount if amount > 0 else 0.0,
                details={
                    "scenario": scenario,
                    "regime": data.regime_foncier.value,
                    "no_effect": data.regime_foncier == RegimeFoncier.MICRO,
                    "total_before": base.total_avec_foncier,
                    "total_after": with_works.total_avec_foncier,
                    "revenu_foncier_net_after": with_works.revenu_foncier_net,
                    "deficit_reportable_after": with_works.deficit_reportable,
                },
            )
        )
    return recommendations


def rank_recommendations(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """PER first, then the others by descending ratio (stable)."""
    items = list(recommendations)
    per = [r for r in items if r.type == RecommendationType.PER]
    others = sorted((r for r in items if r.type != RecommendationType.PER), key=lambda r: r.ratio, reverse=True)
    return per + others


def compute_recommendations(
    result: TaxCalculationResult,
    data: TaxSimulationInput,
    overrides: RecommendationOverrides | None = None,
    engine: TaxSimulationEngine | None = None,
) -> list[Recommendation]:
    """Compute ranked recommendations for a simulation.

    Args:
        result: Result of `engine.simulate(data)`
        data: The input that produced `result` (after autofill)
        overrides: Slider values, defaults to the suggested amounts
        engine: Engine to re-run, defaults to one bound to the result's year

    Returns:
        PER recommendation first, then works scenarios by descending ratio
    """
    overrides = overrides or RecommendationOverrides()
    engine = engine or TaxSimulationEngine.for_year(result.annee_parametres)
    params = engine.parameters_for(data)

    recommendations = [per_recommendation(result, data, params, overrides)]
    recommendations.extend(works_recommendations(result, data, engine, params, overrides))
    ranked = rank_recommendations(recommendations)

    log.debug(
        "recommendations_computed",
        count=len(ranked),
        best_savings=round(max((r.potential_savings for r in ranked), default=0.0), 2),
    )
    return ranked
