"""
Router - the append-only routing surface controllers register against.

Two-tier lookup:
1. Static route hash map: O(1) lookup for routes with no parameters
2. Parameterised routes tried in descending specificity, ties resolved
   in registration order
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple
import logging

from ..faults import RouteConflictFault, RouteNotFoundFault, RouterFrozenFault
from .locations import get_location
from .patterns import CompiledPattern, compile_path, normalize_path

logger = logging.getLogger("wirebind.routing")

Handler = Callable[..., Any]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


@dataclass(frozen=True)
class Route:
    """A registered route."""
    method: str
    pattern: CompiledPattern
    handler: Handler
    name: Optional[str] = None
    owner: Optional[str] = None
    typed: Optional[type] = None

    @property
    def path(self) -> str:
        return self.pattern.raw

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "name": self.name,
            "owner": self.owner,
            "handler": getattr(self.handler, "__qualname__", repr(self.handler)),
            "typed": self.typed.__qualname__ if self.typed else None,
            "specificity": self.pattern.specificity,
        }


@dataclass
class RouteMatch:
    """Result of a successful route match."""
    route: Route
    params: Dict[str, Any] = field(default_factory=dict)


class Router:
    """
    Append-only route table.

    Routes can be added until :meth:`freeze` is called; the same method
    and path cannot be registered twice.
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._static: Dict[str, Dict[str, Route]] = {}  # {method: {path: route}}
        self._dynamic: Dict[str, List[Route]] = {}  # {method: [route]} sorted by specificity
        self._frozen = False
        self._owner: Optional[str] = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        name: Optional[str] = None,
        owner: Optional[str] = None,
        typed: Optional[type] = None,
    ) -> Route:
        """
        Attach a handler to ``method`` + ``path``.

        Raises:
            RouterFrozenFault: After :meth:`freeze`
            RouteConflictFault: If method and path are already taken
        """
        method = method.upper()
        pattern = get_location(typed) if typed is not None else compile_path(path)

        if self._frozen:
            raise RouterFrozenFault(method, pattern.raw)

        existing = self._find_conflict(method, pattern)
        if existing is not None:
            raise RouteConflictFault(method, pattern.raw, existing.owner)

        route = Route(
            method=method,
            pattern=pattern,
            handler=handler,
            name=name,
            owner=owner if owner is not None else self._owner,
            typed=typed,
        )
        self._routes.append(route)

        if pattern.is_static:
            self._static.setdefault(method, {})[pattern.raw] = route
        else:
            dynamic = self._dynamic.setdefault(method, [])
            dynamic.append(route)
            # sort() is stable, so equal specificity keeps registration order
            dynamic.sort(key=lambda r: r.pattern.specificity, reverse=True)

        logger.debug("Added route %s %s (owner=%s)", method, pattern.raw, route.owner)
        return route

    def get(self, path: str, handler: Handler, **kwargs) -> Route:
        return self.add_route("GET", path, handler, **kwargs)

    def post(self, path: str, handler: Handler, **kwargs) -> Route:
        return self.add_route("POST", path, handler, **kwargs)

    def put(self, path: str, handler: Handler, **kwargs) -> Route:
        return self.add_route("PUT", path, handler, **kwargs)

    def patch(self, path: str, handler: Handler, **kwargs) -> Route:
        return self.add_route("PATCH", path, handler, **kwargs)

    def delete(self, path: str, handler: Handler, **kwargs) -> Route:
        return self.add_route("DELETE", path, handler, **kwargs)

    def route(
        self,
        typed: type,
        handler: Optional[Handler] = None,
        *,
        method: str = "GET",
        name: Optional[str] = None,
    ):
        """
        Register a handler for a typed route.

        The handler receives the call and the parsed route instance.
        Usable directly or as a decorator:

            @router.route(UserRoute)
            def show(call, user): ...
        """
        if handler is not None:
            return self.add_route(method, "", handler, name=name, typed=typed)

        def decorator(fn: Handler) -> Handler:
            self.add_route(method, "", fn, name=name, typed=typed)
            return fn

        return decorator

    @contextmanager
    def registering(self, owner: str) -> Iterator["Router"]:
        """Attribute routes added inside the block to ``owner``."""
        previous = self._owner
        self._owner = owner
        try:
            yield self
        finally:
            self._owner = previous

    def freeze(self) -> None:
        """Stop accepting routes."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the route for ``method`` + ``path``.

        Returns:
            RouteMatch, or None when nothing matches (not found)
        """
        method = method.upper()
        norm = normalize_path(path)

        static_map = self._static.get(method)
        if static_map:
            hit = static_map.get(norm)
            if hit is not None:
                return RouteMatch(route=hit)

        for route in self._dynamic.get(method, ()):
            params = route.pattern.match(norm)
            if params is not None:
                return RouteMatch(route=route, params=params)

        return None

    def allowed_methods(self, path: str) -> Set[str]:
        """Methods that have a route matching ``path``."""
        methods = set()
        for method in set(self._static) | set(self._dynamic):
            if self.match(method, path) is not None:
                methods.add(method)
        return methods

    def has_route(self, method: str, path: str) -> bool:
        return self.match(method, path) is not None

    def routes(self) -> Tuple[Route, ...]:
        """All routes in registration order."""
        return tuple(self._routes)

    def paths(self) -> Set[str]:
        """Distinct path templates."""
        return {r.path for r in self._routes}

    def url_for(self, name: str, /, **params: Any) -> str:
        """
        Reverse URL generation by route name.

        Raises:
            RouteNotFoundFault: If no route carries ``name``
        """
        for route in self._routes:
            if route.name == name:
                return route.pattern.format(**params)
        raise RouteNotFoundFault(name)

    def _find_conflict(self, method: str, pattern: CompiledPattern) -> Optional[Route]:
        # Same shape means same matches, whatever the parameters are named
        shape = pattern.shape
        for route in self._routes:
            if route.method == method and route.pattern.shape == shape:
                return route
        return None

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __repr__(self) -> str:
        return f"<Router routes={len(self._routes)}{' frozen' if self._frozen else ''}>"
