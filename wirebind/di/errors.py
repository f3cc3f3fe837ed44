"""
DI-specific error types with rich diagnostics.
"""

from typing import List, Optional


class DIError(Exception):
    """Base exception for DI errors."""
    pass


class ProviderNotFoundError(DIError):
    """Provider not found for requested token."""

    def __init__(
        self,
        token: str,
        candidates: Optional[List[str]] = None,
        requested_by: Optional[str] = None,
    ):
        self.token = token
        self.candidates = candidates or []
        self.requested_by = requested_by

        msg = f"No provider found for token={token}"

        if requested_by:
            msg += f"\nRequested by: {requested_by}"

        if self.candidates:
            msg += "\n\nCandidates found:"
            for candidate in self.candidates:
                msg += f"\n  - {candidate}"

        msg += "\n\nSuggested fixes:"
        msg += f"\n  - Bind {token} in the application mapper"
        msg += "\n  - Make the dependency optional with a default value"

        super().__init__(msg)


class DependencyCycleError(DIError):
    """Circular dependency detected while resolving."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle

        msg = "Detected dependency cycle:"
        for i, token in enumerate(cycle):
            arrow = " -> " if i < len(cycle) - 1 else ""
            msg += f"\n  {token}{arrow}"

        msg += "\n\nSuggested fixes:"
        msg += "\n  - Resolve one side lazily through the injected Container"
        msg += "\n  - Extract an interface to decouple directionally"

        super().__init__(msg)


class DuplicateBindingError(DIError):
    """A token was bound twice."""

    def __init__(self, token: str, existing: str):
        self.token = token
        self.existing = existing
        super().__init__(
            f"Provider for {token} already registered: {existing}"
            f"\n\nBindings are immutable; use bind_alias() to expose the same"
            f" instance under another token."
        )


class ContainerFrozenError(DIError):
    """A binding was declared after the container was frozen."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(
            f"Cannot bind {token}: container is frozen after bootstrap"
        )
