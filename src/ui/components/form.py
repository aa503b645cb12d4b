"""Sidebar simulation form."""

from __future__ import annotations

import streamlit as st

from src.core.fiscal_parameters import available_years
from src.core.settings import get_settings
from src.ui.helpers import REGIME_LABELS
from src.ui.state import FormParams


def render_household_section(defaults: FormParams) -> dict:
    """Salary, family situation and PER inputs."""
    st.subheader("👤 Foyer")
    situation = st.radio(
        "Situation",
        ["celibataire", "couple"],
        index=0 if defaults.situation_familiale == "celibataire" else 1,
        format_func=lambda s: "Célibataire" if s == "celibataire" else "Couple",
        horizontal=True,
    )
    min_parts = 2.0 if situation == "couple" else 1.0
    return {
        "situation_familiale": situation,
        "salaire_brut_annuel": st.number_input(
            "Salaire brut annuel (€)", 0.0, 10_000_000.0, defaults.salaire_brut_annuel, 1000.0,
        ),
        "parts_quotient_familial": st.number_input(
            "Parts de quotient familial", min_parts, 20.0, max(defaults.parts_quotient_familial, min_parts), 0.5,
        ),
        "versement_per_deductible": st.number_input(
            "Versement PER déductible (€)", 0.0, 1_000_000.0, defaults.versement_per_deductible, 100.0,
        ),
        "autres_revenus_imposables": st.number_input(
            "Autres revenus imposables (€)", 0.0, 10_000_000.0, defaults.autres_revenus_imposables, 500.0,
        ),
    }


def render_property_section(defaults: FormParams) -> dict:
    """Rental income inputs, or the autofill switch."""
    st.subheader("🏠 Revenus fonciers")
    autofill = st.toggle(
        "Remplir depuis mes transactions",
        value=defaults.autofill_from_db,
    )
    values: dict = {"autofill_from_db": autofill}

    if autofill:
        values["inclure_frais_gestion_autofill"] = st.checkbox(
            "Inclure les frais de gestion",
            value=defaults.inclure_frais_gestion_autofill,
        )
    else:
        values["loyers_percus_total"] = st.number_input(
            "Loyers perçus (€/an)", 0.0, 10_000_000.0, defaults.loyers_percus_total, 500.0,
        )
        values["charges_foncieres_total"] = st.number_input(
            "Charges déductibles (€/an)", 0.0, 10_000_000.0, defaults.charges_foncieres_total, 500.0,
        )
        values["travaux_deja_effectues"] = st.number_input(
            "Travaux déjà effectués (€)", 0.0, 10_000_000.0, defaults.travaux_deja_effectues, 500.0,
        )
        values["pourcentage_gestion"] = st.slider(
            "Frais de gestion (%)", 0.0, 20.0, defaults.pourcentage_gestion, 0.5,
        )

    values["regime_foncier"] = st.selectbox(
        "Régime",
        list(REGIME_LABELS),
        index=list(REGIME_LABELS).index(defaults.regime_foncier),
        format_func=REGIME_LABELS.get,
    )
    return values


def render_simulation_form(defaults: FormParams) -> tuple[dict, bool]:
    """Render the sidebar form.

    Returns:
        (payload, submitted)
    """
    with st.sidebar:
        st.title("⚙️ Simulation")
        payload = render_household_section(defaults)
        payload.update(render_property_section(defaults))

        years = available_years()
        default_year = get_settings().default_fiscal_year
        with st.expander("⚖️ Paramètres fiscaux", expanded=False):
            payload["annee_parametres"] = st.selectbox(
                "Barème",
                years,
                index=years.index(default_year) if default_year in years else len(years) - 1,
            )

        submitted = st.button("🧮 Calculer", type="primary", use_container_width=True)
    return payload, submitted
