"""Request handlers bound to an explicit user context."""

from src.domain.models.context import UserContext

from .handlers import bracket_tax, error_response, get_tax_config, recommend, simulate

__all__ = [
    "UserContext",
    "simulate",
    "recommend",
    "get_tax_config",
    "bracket_tax",
    "error_response",
]
