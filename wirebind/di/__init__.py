"""
Wirebind Dependency Injection System

Ordered, explicit bindings resolved synchronously at bootstrap.

Key Features:
- Declaration-ordered bindings with capability tags
- Singleton and factory scopes
- Constructor injection from type annotations
- Cycle detection with resolution traces
- Diagnostic events routed to logging
"""

from .core import (
    Binding,
    Container,
    Provider,
    ProviderMeta,
    ResolveCtx,
    token_key,
)

from .providers import (
    AliasProvider,
    ClassProvider,
    FactoryProvider,
    ValueProvider,
)

from .builder import (
    BindingDeclaration,
    ContainerBuilder,
)

from .scopes import Scope

from .diagnostics import (
    DIDiagnostics,
    DIEvent,
    DIEventType,
    LoggingDiagnosticListener,
)

from .errors import (
    ContainerFrozenError,
    DependencyCycleError,
    DIError,
    DuplicateBindingError,
    ProviderNotFoundError,
)

__all__ = [
    # Core types
    "Binding",
    "Container",
    "Provider",
    "ProviderMeta",
    "ResolveCtx",
    "token_key",

    # Providers
    "AliasProvider",
    "ClassProvider",
    "FactoryProvider",
    "ValueProvider",

    # Builder
    "BindingDeclaration",
    "ContainerBuilder",

    # Scopes
    "Scope",

    # Diagnostics
    "DIDiagnostics",
    "DIEvent",
    "DIEventType",
    "LoggingDiagnosticListener",

    # Errors
    "ContainerFrozenError",
    "DependencyCycleError",
    "DIError",
    "DuplicateBindingError",
    "ProviderNotFoundError",
]
