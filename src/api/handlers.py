"""Simulation request handlers.

Each handler takes a raw JSON-like payload and an explicit UserContext and
returns a JSON-serialisable dict. Errors are raised as SimulateurError
subclasses; `error_response` turns them into a status code and body.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import ValidationError

from src.application.services.recommendations import compute_recommendations
from src.application.services.simulation import TaxSimulationEngine
from src.core.exceptions import InvalidAmountError, InvalidInputError, SimulateurError
from src.core.fiscal_parameters import load_fiscal_parameters, tax_config_payload
from src.core.logging import bound_request, get_logger
from src.core.settings import get_settings
from src.domain.calculator.tax import bracket_breakdown, compute_bracket_tax
from src.domain.models.context import UserContext
from src.domain.models.recommendation import RecommendationOverrides
from src.domain.models.simulation import TaxCalculationResult, TaxSimulationInput
from src.services.autofill import AutofillData, TransactionSource, autofill_for_user

log = get_logger(__name__)


def check_amount(amount: Any) -> float:
    """Validate an amount at the API boundary.

    Raises:
        InvalidAmountError: If the amount is not a finite number >= 0.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError(amount)
    if math.isnan(amount) or math.isinf(amount):
        raise InvalidAmountError(amount, "amount must be finite")
    if amount < 0:
        raise InvalidAmountError(amount)
    return float(amount)


def bracket_tax(amount: Any, year: int | None = None) -> float:
    """Progressive tax on `amount` with the bracket table of `year`."""
    value = check_amount(amount)
    return compute_bracket_tax(value, load_fiscal_parameters(year).brackets)


def get_tax_config(year: int | None = None) -> dict[str, Any]:
    """Public tax configuration (bracket table, rates, ceilings)."""
    return tax_config_payload(year)


def _prepare_input(
    payload: Any,
    context: UserContext,
    source: TransactionSource | None,
) -> tuple[TaxSimulationInput, AutofillData | None]:
    data = TaxSimulationInput.from_payload(payload)
    if not data.autofill_from_db:
        return data, None

    year = data.annee_parametres or get_settings().default_fiscal_year
    autofill = autofill_for_user(context, year, source)
    data = data.model_copy(update=autofill.as_input_update(data.inclure_frais_gestion_autofill))
    return data, autofill


def _result_payload(
    result: TaxCalculationResult,
    engine: TaxSimulationEngine,
    autofill: AutofillData | None,
) -> dict[str, Any]:
    params = engine.params or load_fiscal_parameters(result.annee_parametres)
    return {
        "result": result.model_dump(mode="json"),
        "bracket_breakdown": bracket_breakdown(
            result.revenus_avec_foncier / result.parts_quotient_familial, params.brackets
        ),
        "autofill": autofill.to_dict() if autofill else None,
    }


def simulate(
    payload: Any,
    context: UserContext,
    source: TransactionSource | None = None,
) -> dict[str, Any]:
    """Run a tax simulation.

    Args:
        payload: Form data (see TaxSimulationInput)
        context: Authenticated user
        source: Transaction source, required when autofill_from_db is set

    Returns:
        {"result", "bracket_breakdown", "autofill"}
    """
    with bound_request(user_id=context.user_id):
        data, autofill = _prepare_input(payload, context, source)
        engine = TaxSimulationEngine.for_year(data.annee_parametres)
        result = engine.simulate(data)

        log.info(
            "simulation_completed",
            year=result.annee_parametres,
            autofill=autofill is not None,
            delta_impot=round(result.delta_impot, 2),
        )
        return _result_payload(result, engine, autofill)


def _parse_overrides(overrides: Any) -> RecommendationOverrides:
    if overrides is None:
        return RecommendationOverrides()
    if isinstance(overrides, RecommendationOverrides):
        return overrides
    if not isinstance(overrides, dict):
        raise InvalidInputError("overrides", overrides, "expected a JSON object")
    try:
        return RecommendationOverrides.model_validate(overrides)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "overrides"
        raise InvalidInputError(field, first.get("input"), first.get("msg", "")) from e


def recommend(
    payload: Any,
    context: UserContext,
    overrides: Any = None,
    source: TransactionSource | None = None,
) -> dict[str, Any]:
    """Run a simulation and compute the ranked recommendations.

    Returns:
        Simulation payload plus "recommendations"
    """
    options = _parse_overrides(overrides)
    with bound_request(user_id=context.user_id):
        data, autofill = _prepare_input(payload, context, source)
        engine = TaxSimulationEngine.for_year(data.annee_parametres)
        result = engine.simulate(data)
        recommendations = compute_recommendations(result, data, options, engine)
        log.info("recommendations_completed", count=len(recommendations))

    body = _result_payload(result, engine, autofill)
    body["recommendations"] = [r.model_dump(mode="json") for r in recommendations]
    return body


def error_response(exc: Exception) -> tuple[int, dict[str, Any]]:
    """Map an exception to an HTTP-like (status, body) pair.

    Invalid input is a client error (400), everything else a server error (500).
    """
    if isinstance(exc, InvalidInputError):
        return 400, {"error": str(exc), "field": exc.field}
    if isinstance(exc, SimulateurError):
        log.error("request_failed", error_type=type(exc).__name__, error=str(exc))
        return 500, {"error": str(exc)}
    log.error("unexpected_error", error_type=type(exc).__name__, exc_info=exc)
    return 500, {"error": "Erreur serveur"}
