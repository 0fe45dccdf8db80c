"""Closed enumeration of identity roles.

Every role check in the service goes through ``Role``; raw role strings
from the store are parsed once with ``Role.parse``.
"""

import enum


class Role(enum.StrEnum):
    """Roles an identity can hold."""

    ADMINISTRATOR = "administrator"
    SCRUTINEER = "scrutineer"
    OBSERVER = "observer"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Parse a stored role value, returning None for unknown roles."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


ROLE_PATTERN = "^(" + "|".join(r.value for r in Role) + ")$"
