"""Core infrastructure: exceptions, settings, logging and fiscal parameters."""

from .exceptions import (
    ConfigurationError,
    DataSourceError,
    FiscalYearNotFoundError,
    ImportFormatError,
    InvalidAmountError,
    InvalidInputError,
    SimulateurError,
)

__all__ = [
    "SimulateurError",
    "InvalidInputError",
    "InvalidAmountError",
    "ConfigurationError",
    "FiscalYearNotFoundError",
    "DataSourceError",
    "ImportFormatError",
]
