"""
Scope definitions.
"""

from enum import Enum


class Scope(str, Enum):
    """Binding lifetime scopes."""

    SINGLETON = "singleton"  # One instance per container, created on first resolve
    FACTORY = "factory"      # New instance every resolve

    @property
    def cacheable(self) -> bool:
        return self is Scope.SINGLETON

    @classmethod
    def coerce(cls, value: "Scope | str") -> "Scope":
        """Accept either a Scope member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown scope {value!r} (expected one of: {valid})") from None
