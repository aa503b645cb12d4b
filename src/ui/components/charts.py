"""Chart components for visualization."""

from __future__ import annotations

from typing import Any

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st


def render_tax_comparison_chart(result: dict[str, Any], key: str = "cmp") -> None:
    """Grouped bars: income tax and social levies, without vs with property income.

    Args:
        result: Serialised TaxCalculationResult
        key: Unique key for the chart element
    """
    scenarios = ["Sans foncier", "Avec foncier"]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=scenarios,
        y=[result["ir_sans_foncier"], result["ir_avec_foncier"]],
        name="Impôt sur le revenu",
        marker_color="#17a2b8",
    ))
    fig.add_trace(go.Bar(
        x=scenarios,
        y=[0.0, result["ps_foncier"]],
        name="Prélèvements sociaux",
        marker_color="#ffc107",
    ))
    fig.update_layout(
        barmode="stack",
        title="Impôt total avec et sans revenus fonciers",
        yaxis_title="Montant (€)",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    st.plotly_chart(fig, use_container_width=True, key=f"tax_comparison_{key}")


def render_bracket_chart(breakdown: list[dict[str, Any]], key: str = "brk") -> None:
    """Tax paid per bracket, for one family quotient part."""
    if not breakdown:
        st.info("Aucun revenu imposable.")
        return

    df = pd.DataFrame(breakdown)
    fig = px.bar(
        df,
        x="tranche",
        y="impot",
        text_auto=".0f",
        title="Impôt par tranche (pour une part)",
        labels={"tranche": "Tranche", "impot": "Impôt (€)"},
        color_discrete_sequence=["#28a745"],
    )
    st.plotly_chart(fig, use_container_width=True, key=f"brackets_{key}")


def render_savings_chart(recommendations: list[dict[str, Any]], key: str = "sav") -> None:
    """Horizontal bars of potential savings per recommendation."""
    if not recommendations:
        return

    df = pd.DataFrame(
        [{"label": r["label"], "potential_savings": r["potential_savings"]} for r in recommendations]
    )
    fig = px.bar(
        df,
        x="potential_savings",
        y="label",
        orientation="h",
        title="Économies d'impôt potentielles",
        labels={"potential_savings": "Économie (€)", "label": ""},
        color_discrete_sequence=["#6f42c1"],
    )
    fig.update_layout(yaxis=dict(autorange="reversed"))
    st.plotly_chart(fig, use_container_width=True, key=f"savings_{key}")


def render_cashflow_chart(df: pd.DataFrame, key: str = "cf") -> None:
    """Monthly income vs expenses, from dashboard.monthly_cashflow."""
    if df is None or df.empty:
        st.info("Aucune transaction enregistrée.")
        return

    data = df.reset_index()
    fig = go.Figure()
    fig.add_trace(go.Bar(x=data["month"], y=data["income"], name="Revenus", marker_color="#28a745"))
    fig.add_trace(go.Bar(x=data["month"], y=data["regular_expense"], name="Dépenses", marker_color="#dc3545"))
    fig.add_trace(go.Bar(x=data["month"], y=data["loan_payment"], name="Emprunts", marker_color="#6c757d"))
    fig.add_trace(go.Scatter(
        x=data["month"],
        y=data["net"],
        name="Solde",
        line=dict(color="#17a2b8", width=3),
        mode="lines+markers",
    ))
    fig.update_layout(
        barmode="group",
        title="Flux mensuels",
        xaxis_title="Mois",
        yaxis_title="Montant (€)",
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    st.plotly_chart(fig, use_container_width=True, key=f"cashflow_{key}")
