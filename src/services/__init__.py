"""Bookkeeping services: classification, autofill, Airbnb import, dashboard."""

from .autofill import AutofillData, InMemoryTransactionSource, TransactionSource, aggregate_fiscal_data
from .classifier import ClassificationTable, TransactionCategory, load_classification_table

__all__ = [
    "AutofillData",
    "InMemoryTransactionSource",
    "TransactionSource",
    "aggregate_fiscal_data",
    "ClassificationTable",
    "TransactionCategory",
    "load_classification_table",
]
