"""
Application handle and the bootstrap entry point.

``create_application`` builds the container, binds the application
handle into it, lets the caller's mapper declare its bindings, then
registers every controller's routes before anything is served:

    def mapper(builder, application):
        application.install(DefaultHeaders())
        builder.bind(UserRepository).singleton(InMemoryUserRepository)
        builder.bind(UsersController).singleton()

    app = create_application(mapper)
"""

from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar
import inspect
import logging

from .config import AppConfig
from .controller.binder import BootstrapReport, bootstrap
from .di.builder import ContainerBuilder
from .di.core import Container
from .di.diagnostics import LoggingDiagnosticListener
from .faults import Fault
from .response import MethodNotAllowed, NotFound, Response, ServerError
from .routing import locations
from .routing.router import Router


F = TypeVar("F")

Mapper = Callable[[ContainerBuilder, "Application"], None]


@dataclass
class Call:
    """Per-request context handed to route handlers."""
    application: "Application"
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def container(self) -> Container:
        return self.application.container

    def href(self, route: Any) -> str:
        return self.application.href(route)


class DefaultHeaders:
    """
    Adds ``Date`` and ``Server`` headers to every response.

    Extra headers come from the constructor and ``AppConfig.default_headers``;
    headers already set by a handler are left alone.
    """

    def __init__(self, server: Optional[str] = None, headers: Optional[Mapping[str, str]] = None):
        self.server = server
        self.headers: Dict[str, str] = dict(headers or {})

    def install(self, application: "Application") -> None:
        if self.server is None:
            self.server = application.config.server_header
        for name, value in application.config.default_headers.items():
            self.headers.setdefault(name, value)

    def on_response(self, call: Call, response: Response) -> None:
        response.setdefault_header("date", formatdate(usegmt=True))
        if self.server:
            response.setdefault_header("server", self.server)
        for name, value in self.headers.items():
            response.setdefault_header(name, value)


class Application:
    """
    The application handle.

    Bound in the container under ``Application`` so controllers can reach
    the router, the configuration and the installed features.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        self.router = Router()
        self.container: Optional[Container] = None
        self.report: Optional[BootstrapReport] = None
        self.features: List[Any] = []
        self.logger = logging.getLogger("wirebind.application")

    @property
    def name(self) -> str:
        return self.config.app_name

    def install(self, feature: F) -> F:
        """Install a feature once; installing the same type again returns the first."""
        existing = self.feature(type(feature))
        if existing is not None:
            return existing
        install = getattr(feature, "install", None)
        if install is not None:
            install(self)
        self.features.append(feature)
        self.logger.debug("Installed feature %s", type(feature).__name__)
        return feature

    def feature(self, feature_type: Type[F]) -> Optional[F]:
        for feature in self.features:
            if isinstance(feature, feature_type):
                return feature
        return None

    def href(self, route: Any) -> str:
        """URL of a typed route instance."""
        return locations.href(route)

    def url_for(self, name: str, /, **params: Any) -> str:
        return self.router.url_for(name, **params)

    async def dispatch(
        self,
        method: str,
        path: str,
        query: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        """
        Run the handler registered for ``method`` + ``path``.

        Unmatched paths answer 404, paths registered under other methods
        answer 405. Handler errors are logged and answered with 500.
        """
        call = Call(
            application=self,
            method=method.upper(),
            path=path,
            query=dict(query or {}),
            headers=dict(headers or {}),
        )

        match = self.router.match(call.method, path)
        if match is None:
            allowed = self.router.allowed_methods(path)
            response = MethodNotAllowed(sorted(allowed)) if allowed else NotFound()
            return self._finish(call, response)

        call.params = match.params
        route = match.route

        try:
            if route.typed is not None:
                result = route.handler(call, locations.parse(route.typed, match.params, call.query))
            else:
                result = route.handler(call)
            if inspect.isawaitable(result):
                result = await result
            response = Response.coerce(result)
        except Fault as fault:
            self.logger.error("Handler for %s %s raised %s", call.method, path, fault)
            response = Response.from_fault(fault)
        except Exception:
            self.logger.exception("Unhandled error in handler for %s %s", call.method, path)
            response = ServerError()

        return self._finish(call, response)

    def _finish(self, call: Call, response: Response) -> Response:
        for feature in self.features:
            hook = getattr(feature, "on_response", None)
            if hook is not None:
                hook(call, response)
        return response

    def __repr__(self) -> str:
        return f"<Application {self.name!r} routes={len(self.router)}>"


def create_application(
    mapper: Optional[Mapper] = None,
    *,
    config: Optional[AppConfig] = None,
) -> Application:
    """
    Build, bootstrap and freeze an application.

    The container binds ``Application``, ``AppConfig`` and ``Router``
    before the mapper runs. After the mapper, the container is frozen,
    every controller binding registers its routes (see
    :func:`wirebind.controller.bootstrap`) and the router is frozen.

    Raises:
        Any resolution or registration error when ``config.fail_fast``
        is set (the default).
    """
    application = Application(config)
    config = application.config

    builder = ContainerBuilder(name=config.app_name)
    if logging.getLogger("wirebind.di").isEnabledFor(logging.DEBUG):
        builder.container.diagnostics.add_listener(LoggingDiagnosticListener())

    builder.bind(Application).instance(application)
    builder.bind(AppConfig).instance(config)
    builder.bind(Router).instance(application.router)

    if mapper is not None:
        mapper(builder, application)

    container = builder.build(freeze=True)
    application.container = container

    application.report = bootstrap(container, application.router, fail_fast=config.fail_fast)
    application.router.freeze()

    application.logger.info(
        "Application '%s' ready with %d route(s)", application.name, len(application.router)
    )
    return application
