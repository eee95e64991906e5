"""Caller identity handed to every service function."""
from dataclasses import dataclass


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller, as resolved by the (external) auth layer."""

    id: str
    email: str = ""
    is_admin: bool = False
