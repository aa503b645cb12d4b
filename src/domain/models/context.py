"""Authenticated user context."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UserContext:
    """Identity of the caller, passed explicitly to every data access."""

    user_id: str
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)
