"""Application services."""

from .recommendations import compute_recommendations
from .simulation import TaxSimulationEngine, simulate_taxes

__all__ = [
    "TaxSimulationEngine",
    "simulate_taxes",
    "compute_recommendations",
]
