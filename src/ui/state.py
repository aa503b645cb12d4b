"""Session state management for Streamlit app.

Provides a centralized interface for managing Streamlit session state,
with type-safe accessors and default values.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

import streamlit as st

from src.domain.models.recommendation import RecommendationOverrides

T = TypeVar("T")

# Session keys owned by the recommendation widgets
PER_CONTRIBUTION_KEY = "per_additional_contribution"
WORKS_AMOUNT_KEY = "works_amount"
PER_CARRYOVER_KEY = "use_per_carryover"


def get_state(key: str, default: T) -> T:
    """Get a value from session state with a default.

    Args:
        key: Session state key
        default: Default value if key not present

    Returns:
        Value from session state or default
    """
    if key not in st.session_state:
        st.session_state[key] = default
    return st.session_state[key]


def set_state(key: str, value: Any) -> None:
    """Set a value in session state."""
    st.session_state[key] = value


def init_state(defaults: dict[str, Any]) -> None:
    """Initialize multiple session state values with defaults.

    Only sets values that don't already exist.
    """
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def overrides_from_state(state: Mapping[str, Any]) -> RecommendationOverrides:
    """Recommendation overrides from the widget values.

    The widgets are keyed on these session keys, so Streamlit has already
    stored the value of the interaction that triggered the rerun when the
    recommendations are computed.
    """
    return RecommendationOverrides(
        per_additional_contribution=state.get(PER_CONTRIBUTION_KEY),
        works_amount=state.get(WORKS_AMOUNT_KEY),
        use_per_carryover=bool(state.get(PER_CARRYOVER_KEY, False)),
    )


def seed_widget_value(state: MutableMapping[str, Any], key: str, default: float, upper: float) -> float:
    """Give a keyed number widget its starting value, clamped to [0, upper].

    Must run before the widget is created in the current rerun.
    """
    value = state.get(key)
    value = min(max(float(default if value is None else value), 0.0), upper)
    state[key] = value
    return value


@dataclass
class FormParams:
    """Simulation form values from the sidebar."""

    salaire_brut_annuel: float = 45000.0
    parts_quotient_familial: float = 1.0
    situation_familiale: str = "celibataire"
    versement_per_deductible: float = 0.0
    autres_revenus_imposables: float = 0.0

    loyers_percus_total: float = 0.0
    charges_foncieres_total: float = 0.0
    travaux_deja_effectues: float = 0.0
    pourcentage_gestion: float = 0.0
    regime_foncier: str = "reel"

    autofill_from_db: bool = False
    inclure_frais_gestion_autofill: bool = True
    annee_parametres: int | None = None

    @classmethod
    def from_session_state(cls) -> FormParams:
        """Last submitted form values, or the defaults."""
        payload = get_state("last_payload", None) or {}
        known = asdict(cls())
        return cls(**{k: v for k, v in payload.items() if k in known})

    def to_payload(self) -> dict[str, Any]:
        """Payload for the simulation handlers."""
        return asdict(self)


class SessionManager:
    """Manages all session state for the app."""

    DEFAULTS = {
        "last_payload": None,
        "last_response": None,
        "last_error": None,
        PER_CARRYOVER_KEY: False,
    }

    @classmethod
    def initialize(cls) -> None:
        """Initialize all session state with defaults."""
        init_state(cls.DEFAULTS)

    @classmethod
    def get_form_params(cls) -> FormParams:
        return FormParams.from_session_state()

    @classmethod
    def set_response(cls, payload: dict[str, Any], response: dict[str, Any]) -> None:
        """Store a successful simulation and reset the sliders."""
        set_state("last_payload", payload)
        set_state("last_response", response)
        set_state("last_error", None)
        st.session_state.pop(PER_CONTRIBUTION_KEY, None)
        st.session_state.pop(WORKS_AMOUNT_KEY, None)

    @classmethod
    def get_response(cls) -> dict[str, Any] | None:
        return get_state("last_response", None)

    @classmethod
    def get_payload(cls) -> dict[str, Any] | None:
        return get_state("last_payload", None)

    @classmethod
    def set_error(cls, message: str | None) -> None:
        set_state("last_error", message)

    @classmethod
    def get_error(cls) -> str | None:
        return get_state("last_error", None)

    @classmethod
    def get_overrides(cls) -> RecommendationOverrides:
        """Current slider values as recommendation overrides."""
        return overrides_from_state(st.session_state)

    @classmethod
    def request_custom_works(cls) -> None:
        """Button callback: add the custom works scenario, starting at 0 €."""
        set_state(WORKS_AMOUNT_KEY, 0.0)
