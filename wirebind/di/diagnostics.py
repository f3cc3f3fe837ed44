"""
DI Diagnostics - Observability and event tracking for DI containers.
"""

import time
from typing import Any, Dict, List, Optional, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("wirebind.di.diagnostics")


class DIEventType(Enum):
    """Types of DI events."""
    REGISTRATION = "registration"
    RESOLUTION_SUCCESS = "resolution_success"
    RESOLUTION_FAILURE = "resolution_failure"
    FROZEN = "frozen"


@dataclasses.dataclass
class DIEvent:
    """A diagnostic event in the DI system."""
    type: DIEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    token: Optional[str] = None
    provider_name: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[BaseException] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


class DiagnosticListener(Protocol):
    """Interface for DI diagnostic listeners."""
    def on_event(self, event: DIEvent) -> None:
        """Called when a DI event occurs."""
        ...


class LoggingDiagnosticListener:
    """Diagnostic listener that writes events to the ``wirebind.di`` logger."""

    def __init__(self, log_level: int = logging.DEBUG, logger_name: str = "wirebind.di"):
        self.log_level = log_level
        self.logger = logging.getLogger(logger_name)

    def on_event(self, event: DIEvent) -> None:
        if event.type == DIEventType.REGISTRATION:
            self.logger.log(
                self.log_level,
                "Registered provider '%s' for token=%s (scope=%s)",
                event.provider_name, event.token, event.metadata.get("scope"),
            )
        elif event.type == DIEventType.RESOLUTION_SUCCESS:
            self.logger.log(self.log_level, "Resolved token=%s in %.4fs", event.token, event.duration)
        elif event.type == DIEventType.RESOLUTION_FAILURE:
            self.logger.error("Failed to resolve token=%s: %s", event.token, event.error)
        elif event.type == DIEventType.FROZEN:
            self.logger.log(self.log_level, "Container frozen with %d bindings", event.metadata.get("bindings", 0))


class DIDiagnostics:
    """Coordinator for DI diagnostic listeners."""

    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    @property
    def enabled(self) -> bool:
        return bool(self._listeners)

    def emit(self, event_type: DIEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return
        event = DIEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                # Diagnostics should never crash the main application
                logger.error(f"Diagnostic listener error: {e}")
