"""
Wirebind - container-driven controller discovery and route registration.

Bind controllers in a dependency container; bootstrap finds every
binding with the controller capability, in declaration order, and lets
each one attach its routes to the shared router.
"""

__version__ = "0.1.0"

from .application import Application, Call, DefaultHeaders, create_application
from .config import AppConfig, ConfigLoader, load_config
from .controller import (
    CONTROLLER,
    BootstrapReport,
    ContainerController,
    Controller,
    bootstrap,
    find_controllers,
    inject,
)
from .di import Container, ContainerBuilder, Scope
from .faults import BootstrapFault, Fault, FaultDomain, Severity
from .response import Response
from .routing import Router, TypedRoute, href, location

__all__ = [
    "__version__",
    "Application",
    "Call",
    "DefaultHeaders",
    "create_application",
    "AppConfig",
    "ConfigLoader",
    "load_config",
    "CONTROLLER",
    "BootstrapReport",
    "ContainerController",
    "Controller",
    "bootstrap",
    "find_controllers",
    "inject",
    "Container",
    "ContainerBuilder",
    "Scope",
    "BootstrapFault",
    "Fault",
    "FaultDomain",
    "Severity",
    "Response",
    "Router",
    "TypedRoute",
    "href",
    "location",
]
