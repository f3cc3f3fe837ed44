"""
Controllers: the route-registration capability and the bootstrap binder.
"""

from .base import (
    CONTROLLER,
    Controller,
    ContainerController,
    controller_label,
    inject,
    is_controller,
    is_controller_type,
)
from .binder import (
    BootstrapReport,
    bootstrap,
    canonical_key,
    controller_bindings,
    find_controllers,
)

__all__ = [
    "CONTROLLER",
    "Controller",
    "ContainerController",
    "controller_label",
    "inject",
    "is_controller",
    "is_controller_type",
    "BootstrapReport",
    "bootstrap",
    "canonical_key",
    "controller_bindings",
    "find_controllers",
]
