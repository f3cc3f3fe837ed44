"""
Typed routes - classes bound to a path template.

A typed route both builds URLs (``href``) and receives the parsed path
parameters when a handler is registered with it:

    @location("/users/{name}")
    @dataclass
    class UserRoute(TypedRoute):
        name: str

    href(UserRoute("demo"))  # "/users/demo"
"""

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from urllib.parse import urlencode

from .patterns import CompiledPattern, compile_path


T = TypeVar("T")

_LOCATION_ATTR = "__location__"


class TypedRoute:
    """Marker base for classes decorated with :func:`location`."""

    __location__: CompiledPattern


def location(path: str):
    """Class decorator binding ``cls`` to the path template ``path``."""
    pattern = compile_path(path)

    def decorator(cls: Type[T]) -> Type[T]:
        setattr(cls, _LOCATION_ATTR, pattern)
        return cls

    return decorator


def is_typed_route(obj: Any) -> bool:
    cls = obj if isinstance(obj, type) else type(obj)
    return isinstance(getattr(cls, _LOCATION_ATTR, None), CompiledPattern)


def get_location(obj: Any) -> CompiledPattern:
    cls = obj if isinstance(obj, type) else type(obj)
    pattern = getattr(cls, _LOCATION_ATTR, None)
    if not isinstance(pattern, CompiledPattern):
        raise TypeError(f"{cls.__qualname__} is not decorated with @location")
    return pattern


def _route_values(route: Any) -> Dict[str, Any]:
    if is_dataclass(route):
        return {f.name: getattr(route, f.name) for f in fields(route)}
    return {k: v for k, v in vars(route).items() if not k.startswith("_")}


def href(route: Any) -> str:
    """
    Render a typed route instance to a URL.

    Attributes that are not path parameters become the query string.
    """
    pattern = get_location(route)
    values = _route_values(route)

    path_values = {name: values[name] for name in pattern.params if name in values}
    url = pattern.format(**path_values)

    query = {k: v for k, v in values.items() if k not in pattern.params and v is not None}
    if query:
        url += "?" + urlencode(query)
    return url


def parse(cls: Type[T], params: Mapping[str, Any], query: Optional[Mapping[str, Any]] = None) -> T:
    """
    Build a typed route instance from matched path parameters.

    Query values fill dataclass fields that are not path parameters.
    """
    kwargs = dict(params)
    if query and is_dataclass(cls):
        for f in fields(cls):
            if f.name not in kwargs and f.name in query:
                kwargs[f.name] = query[f.name]
    return cls(**kwargs)
