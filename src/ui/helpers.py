"""UI helper functions for Streamlit.

Common formatting utilities.
"""

from __future__ import annotations


def format_euro(value: float | None, decimals: int = 0) -> str:
    """Format a number as Euro currency.

    Args:
        value: Amount to format
        decimals: Number of decimal places

    Returns:
        Formatted string like "1 234 567 €"
    """
    if value is None:
        return "—"
    if decimals == 0:
        return f"{int(round(value)):,}".replace(",", " ") + " €"
    return f"{value:,.{decimals}f}".replace(",", " ") + " €"


def format_rate(value: float | None, decimals: int = 1) -> str:
    """Format a fraction (0.30) as a percentage ("30.0 %")."""
    if value is None:
        return "—"
    return f"{value * 100:.{decimals}f} %"


REGIME_LABELS = {
    "reel": "Régime réel",
    "micro": "Micro-foncier",
}
