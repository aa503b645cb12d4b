"""Simulation results and recommendation cards."""

from __future__ import annotations

from typing import Any

import pandas as pd
import streamlit as st

from src.ui.helpers import REGIME_LABELS, format_euro, format_rate
from src.ui.state import (
    PER_CARRYOVER_KEY,
    PER_CONTRIBUTION_KEY,
    WORKS_AMOUNT_KEY,
    SessionManager,
    seed_widget_value,
)

MAX_CUSTOM_WORKS = 1_000_000.0


def render_summary(result: dict[str, Any]) -> None:
    """Headline metrics."""
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Impôt total", format_euro(result["total_avec_foncier"]),
              delta=format_euro(result["delta_impot"]), delta_color="inverse")
    c2.metric("Taux effectif", format_rate(result["taux_effectif"]))
    c3.metric("TMI", format_rate(result["tranche_marginale"], 0))
    c4.metric("Bénéfice net foncier", format_euro(result["benefice_net"]))


def render_detail_table(result: dict[str, Any]) -> None:
    """Line-by-line breakdown of the calculation."""
    rows = [
        ("Salaire brut", result["salaire_brut_annuel"]),
        ("Abattement 10 %", -result["abattement_salaire"]),
        ("Versement PER", -result["versement_per_deductible"]),
        ("Salaire imposable", result["salaire_imposable"]),
        ("Loyers perçus", result["loyers_percus_total"]),
        ("Frais de gestion", -result["frais_gestion"]),
        ("Total charges", -result["total_charges"]),
        ("Revenu foncier net", result["revenu_foncier_net"]),
        ("IR sans foncier", result["ir_sans_foncier"]),
        ("IR avec foncier", result["ir_avec_foncier"]),
        ("Décote appliquée", result["decote_avec_foncier"]),
        ("Prélèvements sociaux", result["ps_foncier"]),
    ]
    df = pd.DataFrame(rows, columns=["Poste", "Montant"])
    df["Montant"] = df["Montant"].map(format_euro)
    st.dataframe(df, hide_index=True, use_container_width=True)

    if result["deficit_foncier"] > 0:
        st.info(
            f"Déficit foncier de {format_euro(result['deficit_foncier'])} : "
            f"{format_euro(result['deficit_imputable'])} imputables, "
            f"{format_euro(result['deficit_reportable'])} reportables."
        )
    st.caption(f"{REGIME_LABELS.get(result['regime_foncier'], result['regime_foncier'])} · "
               f"barème {result['annee_parametres']}")


def render_breakdown_table(breakdown: list[dict[str, Any]]) -> None:
    if not breakdown:
        return
    df = pd.DataFrame(breakdown)
    df["taux"] = df["taux"].map(lambda r: format_rate(r, 0))
    df["montant_imposable"] = df["montant_imposable"].map(format_euro)
    df["impot"] = df["impot"].map(format_euro)
    st.dataframe(
        df.rename(columns={
            "tranche": "Tranche",
            "taux": "Taux",
            "montant_imposable": "Base",
            "impot": "Impôt",
        }),
        hide_index=True,
        use_container_width=True,
    )


def render_recommendation_card(rec: dict[str, Any]) -> None:
    """One recommendation with its slider.

    Widgets are keyed on the override session keys, so the rerun a widget
    triggers already computes the recommendations with its new value.
    """
    with st.container(border=True):
        st.markdown(f"#### {'💰' if rec['type'] == 'per' else '🔨'} {rec['label']}")
        c1, c2, c3 = st.columns(3)
        c1.metric("Montant proposé", format_euro(rec["optimal"]))
        c2.metric("Économie d'impôt", format_euro(rec["potential_savings"]))
        c3.metric("€ économisé / € investi", f"{rec['ratio']:.2f}")

        details = rec.get("details", {})
        if rec["type"] == "per":
            headroom = float(details.get("headroom", 0.0))
            if headroom > 0:
                seed_widget_value(st.session_state, PER_CONTRIBUTION_KEY, rec["optimal"], headroom)
                st.slider("Versement PER complémentaire (€)", 0.0, headroom, step=100.0, key=PER_CONTRIBUTION_KEY)
            st.checkbox("Utiliser les plafonds non consommés des 3 années précédentes", key=PER_CARRYOVER_KEY)
        elif details.get("no_effect"):
            st.caption("Sans effet en micro-foncier : les charges réelles ne sont pas déductibles.")
        elif details.get("scenario") == "custom":
            seed_widget_value(st.session_state, WORKS_AMOUNT_KEY, rec["optimal"], MAX_CUSTOM_WORKS)
            st.number_input("Montant de travaux à tester (€)", 0.0, MAX_CUSTOM_WORKS, step=500.0, key=WORKS_AMOUNT_KEY)


def render_recommendations(recommendations: list[dict[str, Any]]) -> None:
    st.markdown("### 💡 Recommandations")
    for rec in recommendations:
        render_recommendation_card(rec)

    if not any(r.get("details", {}).get("scenario") == "custom" for r in recommendations):
        st.button("➕ Tester un montant de travaux personnalisé", on_click=SessionManager.request_custom_works)
