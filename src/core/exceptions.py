"""Custom exceptions for the tax simulator.

Domain-specific exception types for better error handling and debugging.
"""

from __future__ import annotations

from typing import Any



class SimulateurError(Exception):
    """Base exception for all simulator errors."""
    pass


# --- Input Errors ---

class InvalidInputError(SimulateurError):
    """Invalid value provided for a simulation input field."""

    def __init__(self, field: str, value: Any, reason: str = ""):
        self.field = field
        self.value = value
        self.reason = reason
        msg = f"Invalid input '{field}': {value!r}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class InvalidAmountError(InvalidInputError):
    """Negative or non-numeric amount given to the bracket tax function."""

    def __init__(self, value: Any, reason: str = "amount must be a non-negative number"):
        super().__init__("amount", value, reason)


# --- Configuration Errors ---

class ConfigurationError(SimulateurError):
    """Invalid fiscal parameters, bracket table or classification table."""
    pass


class FiscalYearNotFoundError(ConfigurationError):
    """No fiscal parameters are defined for the requested year."""

    def __init__(self, year: int, available: list[int] | None = None):
        self.year = year
        self.available = available or []
        msg = f"No fiscal parameters for year {year}"
        if self.available:
            msg += f" (available: {', '.join(str(y) for y in self.available)})"
        super().__init__(msg)


# --- Data Errors ---

class DataSourceError(SimulateurError):
    """Transaction data could not be fetched for the autofill path."""
    pass


class ImportFormatError(SimulateurError):
    """Failed to read or parse an imported statement file (e.g., Airbnb CSV)."""
    pass
