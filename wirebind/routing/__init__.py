"""
Routing surface, path templates and typed routes.
"""

from .patterns import CompiledParam, CompiledPattern, compile_path, normalize_path
from .locations import TypedRoute, get_location, href, is_typed_route, location, parse
from .router import HTTP_METHODS, Route, RouteMatch, Router

__all__ = [
    "CompiledParam",
    "CompiledPattern",
    "compile_path",
    "normalize_path",
    "TypedRoute",
    "get_location",
    "href",
    "is_typed_route",
    "location",
    "parse",
    "HTTP_METHODS",
    "Route",
    "RouteMatch",
    "Router",
]
