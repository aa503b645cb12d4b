"""
simulateur_impots.src - Income tax simulator for rental property investors

Modules:
    - core: Exceptions, settings, logging and yearly fiscal parameters
    - domain: Pydantic models and pure tax / loan calculators
    - application: Tax simulation and recommendation engines
    - services: Transaction classification, autofill, Airbnb import, dashboard
    - api: Request handlers bound to an explicit user context
    - ui: Streamlit pages and UI components
"""

__version__ = "1.0.0"
