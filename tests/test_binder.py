"""
Test 3: Controller binder (controller/)

Tests controller discovery, bootstrap ordering, failure modes and
the container-aware controller base.
"""

import logging

import pytest

from wirebind.controller.base import (
    CONTROLLER,
    ContainerController,
    Controller,
    controller_label,
    inject,
    is_controller,
    is_controller_type,
)
from wirebind.controller.binder import bootstrap, canonical_key, controller_bindings, find_controllers
from wirebind.di.core import Container
from wirebind.di.errors import ProviderNotFoundError
from wirebind.faults import BootstrapFault, RouteConflictFault

from tests.conftest import FailingController, MarkerController, PlainService, bind_marker


class CountingController:
    instances = 0

    def __init__(self):
        CountingController.instances += 1
        self.registrations = 0

    def register_routes(self, router):
        self.registrations += 1
        router.get(f"/count/{id(self)}", lambda call: "ok")


class Greeter:
    def greet(self):
        return "hello"


class GreetingController(ContainerController):
    greeter = inject(Greeter)
    missing = inject("not.bound", optional=True)

    def register_routes(self, router):
        router.get("/greet", lambda call: self.greeter.greet())


class NeedsGreeter:
    def __init__(self, greeter: Greeter):
        self.greeter = greeter

    def register_routes(self, router):
        router.get("/needs", lambda call: "ok")


# ============================================================================
# Capability
# ============================================================================

class TestControllerCapability:

    def test_structural_detection(self):
        assert is_controller_type(MarkerController)
        assert not is_controller_type(PlainService)
        assert not is_controller_type(MarkerController("x", []))
        assert is_controller(MarkerController("x", []))
        assert isinstance(MarkerController("x", []), Controller)

    def test_label(self):
        assert controller_label(MarkerController("a", [])) == "marker:a"
        assert controller_label(FailingController()) == "FailingController"

    def test_controller_bindings_in_declaration_order(self, container, calls):
        bind_marker(container, "b", "b", calls)
        container.bind(PlainService)
        bind_marker(container, "a", "a", calls)
        assert [b.key for b in controller_bindings(container)] == ["b", "a"]


# ============================================================================
# Bootstrap
# ============================================================================

class TestBootstrap:

    def test_each_controller_registers_exactly_once(self, container, router):
        CountingController.instances = 0
        container.bind(CountingController)
        container.bind_factory("second", lambda: CountingController(), capabilities=(CONTROLLER,))

        report = bootstrap(container, router)

        assert CountingController.instances == 2
        assert len(report.registered) == 2
        assert len(router) == 2

    def test_declaration_order(self, container, router, calls):
        for marker in ("c1", "c2", "c3"):
            bind_marker(container, f"ctrl.{marker}", marker, calls)

        bootstrap(container, router)

        assert calls == ["c1", "c2", "c3"]

    def test_zero_controllers_leave_router_unchanged(self, container, router):
        container.bind(PlainService)
        report = bootstrap(container, router)
        assert len(router) == 0
        assert report.registered == []
        assert report.ok

    def test_two_controllers_two_paths(self, container, router, calls):
        bind_marker(container, "one", "one", calls)
        bind_marker(container, "two", "two", calls)

        bootstrap(container, router)

        assert router.paths() == {"/one", "/two"}
        assert router.match("GET", "/three") is None

    def test_routes_are_owned_by_controller(self, container, router, calls):
        bind_marker(container, "one", "one", calls)
        bootstrap(container, router)
        assert router.match("GET", "/one").route.owner == "marker:one"

    def test_singleton_controller_is_reference_equal(self, container, router):
        container.bind(CountingController)
        bootstrap(container, router)
        first = container.resolve(CountingController)
        assert container.resolve(CountingController) is first
        assert first.registrations == 1

    def test_alias_does_not_register_twice(self, container, router):
        container.bind(CountingController)
        container.bind_alias("counting", CountingController)

        report = bootstrap(container, router)

        assert report.registered == ["CountingController"]
        assert report.skipped == ["counting"]
        assert container.resolve("counting").registrations == 1

    def test_factory_controller_registers_once(self, container, router):
        CountingController.instances = 0
        container.bind(CountingController, scope="factory")
        bootstrap(container, router)
        assert CountingController.instances == 1

    def test_alias_to_factory_controller_registers_once(self, container, router, calls):
        bind_marker(container, "ctrl", "one", calls, scope="factory")
        container.bind_alias("ctrl.alias", "ctrl", capabilities=(CONTROLLER,))

        report = bootstrap(container, router)

        assert calls == ["one"]
        assert report.registered == ["marker:one"]
        assert report.skipped == ["ctrl.alias"]
        assert router.paths() == {"/one"}

    def test_alias_to_factory_class_registers_once(self, container, router):
        CountingController.instances = 0
        container.bind(CountingController, scope="factory")
        container.bind_alias("counting", CountingController)

        report = bootstrap(container, router, fail_fast=False)

        assert report.ok
        assert CountingController.instances == 1
        assert len(router) == 1

    def test_alias_chain_resolves_to_root(self, container, router, calls):
        bind_marker(container, "ctrl", "one", calls, scope="factory")
        container.bind_alias("ctrl.a", "ctrl", capabilities=(CONTROLLER,))
        container.bind_alias("ctrl.b", "ctrl.a", capabilities=(CONTROLLER,))

        assert canonical_key(container, container.get_binding("ctrl.b")) == "ctrl"
        bootstrap(container, router)
        assert calls == ["one"]

    def test_missing_application_precondition(self, router, calls):
        container = Container()
        bind_marker(container, "one", "one", calls)

        with pytest.raises(ProviderNotFoundError):
            bootstrap(container, router)
        assert calls == []

    def test_logs_each_controller(self, container, router, calls, caplog):
        bind_marker(container, "one", "one", calls)
        with caplog.at_level(logging.INFO, logger="wirebind.binder"):
            bootstrap(container, router)
        assert "Registering 'marker:one' routes..." in caplog.text


# ============================================================================
# Failure modes
# ============================================================================

class TestBootstrapFailures:

    def _declare(self, container, calls):
        bind_marker(container, "first", "first", calls)
        container.bind(FailingController)
        bind_marker(container, "third", "third", calls)

    def test_fail_fast_stops_later_controllers(self, container, router, calls):
        self._declare(container, calls)

        with pytest.raises(RuntimeError, match="registration exploded"):
            bootstrap(container, router)

        assert calls == ["first"]
        assert router.paths() == {"/first"}

    def test_continue_mode_collects_failures(self, container, router, calls):
        self._declare(container, calls)

        report = bootstrap(container, router, fail_fast=False)

        assert calls == ["first", "third"]
        assert report.registered == ["marker:first", "marker:third"]
        assert not report.ok
        fault = report.failures[0]
        assert isinstance(fault, BootstrapFault)
        assert fault.controller == "FailingController"
        assert isinstance(fault.cause, RuntimeError)
        assert fault.code == "CONTROLLER_REGISTRATION_FAILED"

    def test_resolution_failure_fail_fast(self, container, router, calls):
        container.bind(NeedsGreeter)
        bind_marker(container, "after", "after", calls)

        with pytest.raises(ProviderNotFoundError):
            bootstrap(container, router)
        assert calls == []

    def test_resolution_failure_continue(self, container, router, calls):
        container.bind(NeedsGreeter)
        bind_marker(container, "after", "after", calls)

        report = bootstrap(container, router, fail_fast=False)

        assert calls == ["after"]
        assert isinstance(report.failures[0].cause, ProviderNotFoundError)

    def test_conflicting_controllers(self, container, router, calls):
        bind_marker(container, "one", "dup", calls)
        bind_marker(container, "two", "dup", calls)
        with pytest.raises(RouteConflictFault):
            bootstrap(container, router)

    def test_non_controller_instance_is_skipped(self, container, router):
        container.bind_factory("fake", lambda: PlainService(), capabilities=(CONTROLLER,))
        report = bootstrap(container, router)
        assert report.skipped == ["fake"]
        assert len(router) == 0


# ============================================================================
# find_controllers & ContainerController
# ============================================================================

class TestFindControllers:

    def test_find_controllers_without_registering(self, container, router, calls):
        bind_marker(container, "a", "a", calls)
        bind_marker(container, "b", "b", calls)
        container.bind_alias("a.alias", "a", capabilities=(CONTROLLER,))

        found = find_controllers(container)

        assert [c.marker for c in found] == ["a", "b"]
        assert calls == []

    def test_find_controllers_alias_to_factory(self, container, calls):
        bind_marker(container, "a", "a", calls, scope="factory")
        container.bind_alias("a.alias", "a", capabilities=(CONTROLLER,))

        assert [c.marker for c in find_controllers(container)] == ["a"]


class TestContainerController:

    def test_inject_resolves_lazily(self, container, router):
        container.bind(Greeter)
        container.bind(GreetingController)

        bootstrap(container, router)
        controller = container.resolve(GreetingController)

        assert controller.greeter.greet() == "hello"
        assert controller.greeter is container.resolve(Greeter)
        assert controller.missing is None

    def test_application_property(self, container, application):
        container.bind(GreetingController)
        controller = container.resolve(GreetingController)
        assert controller.application is application
        assert controller.container is container

    def test_inject_descriptor_on_class(self):
        assert isinstance(GreetingController.greeter, inject)
