"""Main page rendering.

Composes the UI components into the simulation, dashboard and Airbnb
import tabs.
"""

from __future__ import annotations

import datetime as dt

import pandas as pd
import streamlit as st

from src.api import UserContext, error_response, recommend
from src.core.exceptions import SimulateurError
from src.services.airbnb_import import preview_airbnb_import, rows_to_import
from src.services.autofill import TransactionSource
from src.services.dashboard import (
    allocate_tax_by_property,
    compute_dashboard_stats,
    loan_summary,
    monthly_cashflow,
)
from src.ui.components.charts import (
    render_bracket_chart,
    render_cashflow_chart,
    render_savings_chart,
    render_tax_comparison_chart,
)
from src.ui.components.results import (
    render_breakdown_table,
    render_detail_table,
    render_recommendations,
    render_summary,
)
from src.ui.helpers import format_euro, format_rate
from src.ui.state import SessionManager


def render_header() -> None:
    st.markdown("<h1 style='text-align: center;'>🧾 Simulateur d'impôts · investisseur locatif</h1>",
                unsafe_allow_html=True)


def render_simulation_tab(context: UserContext, source: TransactionSource | None) -> None:
    """Results of the last submitted simulation, refreshed with the slider values."""
    error = SessionManager.get_error()
    if error:
        st.error(error)

    payload = SessionManager.get_payload()
    if payload is None:
        st.info("Renseignez le formulaire puis cliquez sur **Calculer**.")
        return

    try:
        response = recommend(payload, context, SessionManager.get_overrides(), source)
    except SimulateurError as e:
        _, body = error_response(e)
        st.error(body["error"])
        return

    result = response["result"]
    render_summary(result)

    col_left, col_right = st.columns(2)
    with col_left:
        render_tax_comparison_chart(result)
        render_detail_table(result)
    with col_right:
        render_bracket_chart(response["bracket_breakdown"])
        render_breakdown_table(response["bracket_breakdown"])

    autofill = response.get("autofill")
    if autofill:
        with st.expander(f"📒 Transactions retenues ({len(autofill['transactions'])})"):
            st.dataframe(pd.DataFrame(autofill["transactions"]), hide_index=True, use_container_width=True)
            st.caption(
                f"Intérêts d'emprunt inclus : {format_euro(autofill['loan_interest'])} · "
                f"gestion moyenne {autofill['pourcentage_gestion']:.1f} % · "
                f"{autofill['unclassified_count']} transaction(s) non classée(s)"
            )

    render_savings_chart(response["recommendations"])
    render_recommendations(response["recommendations"])


def render_dashboard_tab(context: UserContext, source: TransactionSource | None) -> None:
    """Portfolio figures from the local transaction source."""
    if source is None:
        st.info("Aucune source de transactions configurée (SIMIMPOTS_TRANSACTIONS_PATH).")
        return

    today = dt.date.today()
    batch = source.fetch(context, today.year)
    stats = compute_dashboard_stats(batch.properties, batch.transactions, batch.loans, today.strftime("%Y-%m"))

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Patrimoine", format_euro(stats.total_value))
    c2.metric("Occupation", format_rate(stats.occupancy_rate / 100, 0))
    c3.metric("Revenus mensuels", format_euro(stats.monthly_income),
              delta=f"potentiel {format_euro(stats.potential_monthly_income)}", delta_color="off")
    c4.metric("Bénéfice net", format_euro(stats.net_profit),
              delta=f"potentiel {format_euro(stats.potential_net_profit)}", delta_color="off")

    render_cashflow_chart(monthly_cashflow(batch.transactions, stats.monthly_loan_payment))

    loans = loan_summary(batch.loans, today)
    if loans.loans:
        st.markdown("#### Emprunts")
        l1, l2 = st.columns(2)
        l1.metric("Mensualités totales (assurance comprise)", format_euro(loans.total_monthly_payment))
        l2.metric("Capital restant dû", format_euro(loans.total_remaining_capital))
        st.dataframe(
            pd.DataFrame([
                {
                    "Emprunt": p.name or p.loan_id,
                    "Type": p.repayment_type,
                    "Mensualité": format_euro(p.monthly_payment),
                    "Assurance": format_euro(p.monthly_insurance),
                    "Échéances payées": f"{p.months_paid}/{p.duration_months}",
                    "Capital restant dû": format_euro(p.remaining_capital),
                    "Coût des intérêts": format_euro(p.total_interest),
                }
                for p in loans.loans
            ]),
            hide_index=True,
            use_container_width=True,
        )

    response = SessionManager.get_response()
    if response and batch.properties:
        total_tax = response["result"]["delta_impot"]
        rents = {p.name or p.id: p.rent * 12 for p in batch.properties}
        allocation = allocate_tax_by_property(rents, total_tax)
        st.markdown("#### Ventilation de l'impôt foncier par bien")
        st.dataframe(
            pd.DataFrame({"Bien": list(allocation), "Impôt": [format_euro(v) for v in allocation.values()]}),
            hide_index=True,
            use_container_width=True,
        )


def render_import_tab(context: UserContext, source: TransactionSource | None) -> None:
    """Airbnb CSV upload with a reconciliation preview."""
    uploaded = st.file_uploader("Export CSV Airbnb", type=["csv"])
    property_id = st.text_input("Identifiant du bien")
    if uploaded is None or not property_id:
        return

    existing = source.fetch(context, dt.date.today().year).transactions if source else []
    try:
        preview = preview_airbnb_import(uploaded, context, property_id, existing)
    except SimulateurError as e:
        st.error(str(e))
        return

    st.dataframe(pd.DataFrame([p.to_dict() for p in preview]), hide_index=True, use_container_width=True)
    st.caption(f"{len(rows_to_import(preview))} ligne(s) à importer (ajouts et modifications).")


def render_main_page(context: UserContext, source: TransactionSource | None) -> None:
    render_header()
    tab_sim, tab_dash, tab_import = st.tabs(["🧮 Simulation", "📊 Tableau de bord", "📥 Import Airbnb"])
    with tab_sim:
        render_simulation_tab(context, source)
    with tab_dash:
        render_dashboard_tab(context, source)
    with tab_import:
        render_import_tab(context, source)
