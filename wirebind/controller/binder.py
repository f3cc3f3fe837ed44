"""
Controller binder - discovers controller bindings and registers their routes.

Bootstrap walks the container's bindings in declaration order, resolves
every binding carrying the controller capability and calls its
``register_routes`` against the shared router. It runs once, on the
thread that starts the application, before any traffic is served.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple
import logging

from ..di.core import Binding, Container, token_key
from ..di.errors import ProviderNotFoundError
from ..di.providers import AliasProvider
from ..faults import BootstrapFault
from ..routing.router import Router
from .base import CONTROLLER, controller_label, is_controller

logger = logging.getLogger("wirebind.binder")


@dataclass
class BootstrapReport:
    """Outcome of a bootstrap run."""
    registered: List[str] = field(default_factory=list)
    failures: List[BootstrapFault] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def controller_bindings(container: Container) -> Tuple[Binding, ...]:
    """Bindings carrying the controller capability, in declaration order."""
    return container.with_capability(CONTROLLER)


def canonical_key(container: Container, binding: Binding) -> str:
    """
    Key of the binding that actually produces ``binding``'s instance.

    Alias chains are followed to their root; a dangling alias ends at
    its target key.
    """
    key = binding.key
    provider = binding.provider
    visited = set()
    while isinstance(provider, AliasProvider) and key not in visited:
        visited.add(key)
        target = container.get_binding(provider.target)
        if target is None:
            return provider.target
        key, provider = target.key, target.provider
    return key


def find_controllers(container: Container) -> List[Any]:
    """
    Resolve every controller binding, without registering anything.

    Instances reachable through several bindings (aliases) are returned
    once, at the position of their first binding.
    """
    controllers: List[Any] = []
    seen_keys: Set[str] = set()
    seen: Dict[int, Any] = {}  # keeps instances alive so ids stay unique
    for binding in controller_bindings(container):
        root = canonical_key(container, binding)
        if root in seen_keys:
            continue
        seen_keys.add(root)
        instance = container.resolve_binding(binding)
        if not is_controller(instance) or id(instance) in seen:
            continue
        seen[id(instance)] = instance
        controllers.append(instance)
    return controllers


def bootstrap(container: Container, router: Router, *, fail_fast: bool = True) -> BootstrapReport:
    """
    Register the routes of every controller bound in ``container``.

    Args:
        container: Fully declared container; must bind the Application
        router: Routing surface the controllers attach to
        fail_fast: If True (default) the first resolution or registration
            error propagates and no later controller is registered. If
            False, failures are logged, collected in the report and the
            remaining controllers still register.

    Raises:
        ProviderNotFoundError: If the Application handle is not bound
    """
    from ..application import Application

    if not container.is_registered(Application):
        # Controllers reach the application through the container
        raise ProviderNotFoundError(token=token_key(Application), requested_by="bootstrap")

    report = BootstrapReport()
    seen_keys: Set[str] = set()
    seen: Dict[int, Any] = {}  # keeps instances alive so ids stay unique

    for binding in controller_bindings(container):
        # An alias re-resolves its target, which yields a new factory instance
        root = canonical_key(container, binding)
        if root in seen_keys:
            logger.debug("Binding %s aliases already handled %s; skipped", binding.key, root)
            report.skipped.append(binding.key)
            continue
        seen_keys.add(root)

        try:
            instance = container.resolve_binding(binding)
        except Exception as e:
            if fail_fast:
                raise
            _record_failure(report, binding.name, e)
            continue

        if not is_controller(instance):
            logger.debug("Binding %s resolved to a non-controller; skipped", binding.key)
            report.skipped.append(binding.key)
            continue

        if id(instance) in seen:
            logger.debug("Controller behind %s already registered; skipped", binding.key)
            report.skipped.append(binding.key)
            continue
        seen[id(instance)] = instance

        label = controller_label(instance)
        logger.info("Registering '%s' routes...", label)
        try:
            with router.registering(label):
                instance.register_routes(router)
        except Exception as e:
            if fail_fast:
                raise
            _record_failure(report, label, e)
            continue

        report.registered.append(label)

    logger.info(
        "Bootstrap complete: %d controller(s), %d route(s), %d failure(s)",
        len(report.registered), len(router), len(report.failures),
    )
    return report


def _record_failure(report: BootstrapReport, label: str, error: Exception) -> None:
    fault = BootstrapFault(label, error)
    logger.error("%s", fault, exc_info=error)
    report.failures.append(fault)
