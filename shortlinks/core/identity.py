"""Caller identity passed explicitly into every owner-scoped operation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """
    Opaque owner reference issued by the Auth Service.

    Only compared for equality; the service never looks inside user_id.
    """
    user_id: str

    def __str__(self) -> str:
        return self.user_id
