"""
Wirebind faults - structured fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- The concrete faults raised by routing, bootstrap and config
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """
    Fault severity levels.

    Determines logging level and whether bootstrap may continue.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


# Standard Domains
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.DI = FaultDomain("di", "Dependency injection errors")
FaultDomain.ROUTING = FaultDomain("routing", "Route table errors")
FaultDomain.BOOTSTRAP = FaultDomain("bootstrap", "Controller registration errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.DI: Severity.ERROR,
    FaultDomain.ROUTING: Severity.ERROR,
    FaultDomain.BOOTSTRAP: Severity.FATAL,
}


class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    Attributes:
        code: Stable machine-readable identifier (e.g., "ROUTE_CONFLICT")
        message: Human-readable summary
        severity: Fault severity
        domain: Fault domain
        metadata: Additional context data

    Subclasses may declare ``code``, ``message`` and ``domain`` as class
    attributes instead of passing them in.
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        self.severity = severity or DOMAIN_DEFAULTS.get(self.domain, Severity.ERROR)
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"Fault(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and CLI output."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "metadata": self.metadata,
        }


# ============================================================================
# Routing faults
# ============================================================================

class RouteConflictFault(Fault):
    """The same method and path were registered twice."""

    def __init__(self, method: str, path: str, existing_owner: Optional[str] = None):
        message = f"Route {method} {path} is already registered"
        if existing_owner:
            message += f" by {existing_owner}"
        super().__init__(
            code="ROUTE_CONFLICT",
            message=message,
            domain=FaultDomain.ROUTING,
            metadata={"method": method, "path": path, "owner": existing_owner},
        )


class RouterFrozenFault(Fault):
    """A route was added after the router stopped accepting registrations."""

    def __init__(self, method: str, path: str):
        super().__init__(
            code="ROUTER_FROZEN",
            message=f"Cannot add {method} {path}: router is frozen after bootstrap",
            domain=FaultDomain.ROUTING,
            metadata={"method": method, "path": path},
        )


class RouteNotFoundFault(Fault):
    """No route matches a name used for URL generation."""

    def __init__(self, name: str):
        super().__init__(
            code="ROUTE_NOT_FOUND",
            message=f"No route found with name: {name}",
            domain=FaultDomain.ROUTING,
            metadata={"name": name},
        )


class InvalidRoutePatternFault(Fault):
    """A path template could not be compiled."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="INVALID_ROUTE_PATTERN",
            message=f"Invalid route pattern {path!r}: {reason}",
            domain=FaultDomain.ROUTING,
            metadata={"path": path},
        )


# ============================================================================
# Bootstrap & config faults
# ============================================================================

class BootstrapFault(Fault):
    """A controller failed to resolve or to register its routes."""

    def __init__(self, controller: str, cause: BaseException):
        self.controller = controller
        self.cause = cause
        super().__init__(
            code="CONTROLLER_REGISTRATION_FAILED",
            message=f"Controller '{controller}' failed during bootstrap: {cause}",
            domain=FaultDomain.BOOTSTRAP,
            metadata={"controller": controller, "error": type(cause).__name__},
        )


class ConfigFault(Fault):
    """Configuration value missing or of the wrong type."""

    code = "CONFIG_INVALID"
    domain = FaultDomain.CONFIG

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message=message, metadata={"key": key} if key else None)
