"""Data models for the tax simulator."""

from .context import UserContext
from .property import Category, Loan, Property, Transaction, TransactionType
from .recommendation import Recommendation, RecommendationOverrides, RecommendationType
from .simulation import RegimeFoncier, SituationFamiliale, TaxCalculationResult, TaxSimulationInput

__all__ = [
    "UserContext",
    "Category",
    "Loan",
    "Property",
    "Transaction",
    "TransactionType",
    "Recommendation",
    "RecommendationOverrides",
    "RecommendationType",
    "RegimeFoncier",
    "SituationFamiliale",
    "TaxCalculationResult",
    "TaxSimulationInput",
]
