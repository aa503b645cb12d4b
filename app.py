"""Main Application Entry Point.

Streamlit front-end of the tax simulator. Collects the household form,
delegates to the request handlers and renders results and recommendations.
"""

import os
import sys

import streamlit as st

# Add src to path if not present (for running from root)
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from src.api import UserContext, error_response, simulate
from src.core.exceptions import SimulateurError
from src.core.logging import configure_logging, get_logger
from src.core.settings import get_settings
from src.services.autofill import InMemoryTransactionSource, TransactionSource
from src.ui.components.form import render_simulation_form
from src.ui.pages.main import render_main_page
from src.ui.state import SessionManager


@st.cache_resource
def load_transaction_source(path: str | None, user_id: str) -> TransactionSource | None:
    """Local transaction source from SIMIMPOTS_TRANSACTIONS_PATH, if set."""
    if not path:
        return None
    return InMemoryTransactionSource.from_file(path, user_id)


def handle_submit(payload: dict, context: UserContext, source: TransactionSource | None) -> None:
    """Validate and run a simulation, storing the outcome in session state."""
    try:
        response = simulate(payload, context, source)
    except SimulateurError as e:
        _, body = error_response(e)
        SessionManager.set_error(body["error"])
        return
    SessionManager.set_response(payload, response)


def main() -> None:
    """Main application entry point."""
    st.set_page_config(
        page_title="Simulateur d'impôts",
        page_icon="🧾",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    configure_logging()
    log = get_logger(__name__)
    settings = get_settings()

    SessionManager.initialize()
    log.info("app_started")

    context = UserContext(user_id=settings.local_user_id)
    try:
        source = load_transaction_source(
            str(settings.transactions_path) if settings.transactions_path else None,
            settings.local_user_id,
        )
    except SimulateurError as e:
        st.sidebar.error(str(e))
        source = None

    payload, submitted = render_simulation_form(SessionManager.get_form_params())
    if submitted:
        handle_submit(payload, context, source)

    render_main_page(context, source)


if __name__ == "__main__":
    main()
