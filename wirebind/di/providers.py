"""
Provider implementations for different instantiation strategies.
"""

from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union, get_args, get_origin
import inspect
import types

from .core import Container, ProviderMeta, ResolveCtx, token_key
from .errors import DIError
from .scopes import Scope


T = TypeVar("T")

# Unannotated required parameters receive the resolving container
_CONTAINER = token_key(Container)


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return (inner type, is_optional) for ``Optional[X]`` / ``X | None``."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(annotation)):
            return args[0], True
    return annotation, False


def _extract_dependencies(func: Callable, owner: str) -> Dict[str, Dict[str, Any]]:
    """
    Extract dependencies from a callable's signature.

    Annotated parameters resolve their annotation. Unannotated parameters
    with a default are left to the default; unannotated required
    parameters receive the resolving container.

    Returns:
        Dict mapping parameter names to dependency info
    """
    deps: Dict[str, Dict[str, Any]] = {}

    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins that don't support signature inspection
        return deps

    hint_source = func.__init__ if isinstance(func, type) else func
    try:
        type_hints = inspect.get_annotations(hint_source, eval_str=True)
    except Exception:
        try:
            from typing import get_type_hints
            type_hints = get_type_hints(hint_source)
        except Exception:
            type_hints = {}

    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls"):
            continue

        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            raise DIError(
                f"Positional-only parameter '{param_name}' in {owner} cannot be injected"
            )

        annotation = type_hints.get(param_name, param.annotation)
        has_default = param.default is not inspect.Parameter.empty

        if annotation is inspect.Parameter.empty:
            if has_default:
                continue
            deps[param_name] = {"token": _CONTAINER, "optional": False, "has_default": False}
            continue

        annotation, is_optional = _unwrap_optional(annotation)
        deps[param_name] = {
            "token": token_key(annotation),
            "optional": has_default or is_optional,
            "has_default": has_default,
        }

    return deps


def _resolve_dependencies(deps: Dict[str, Dict[str, Any]], ctx: ResolveCtx) -> Dict[str, Any]:
    resolved = {}
    for dep_name, dep_info in deps.items():
        value = ctx.resolve(dep_info["token"], optional=dep_info["optional"])
        if value is None and dep_info["has_default"]:
            # Leave the parameter default in place
            continue
        resolved[dep_name] = value
    return resolved


class ClassProvider:
    """
    Provider that instantiates a class by resolving constructor dependencies.
    """

    __slots__ = ("_meta", "_cls", "_dependencies")

    def __init__(
        self,
        cls: Type[T],
        scope: Scope | str = Scope.SINGLETON,
        token: Any = None,
    ):
        self._cls = cls
        if cls.__init__ is object.__init__:
            self._dependencies = {}
        else:
            self._dependencies = _extract_dependencies(cls.__init__, f"{cls.__qualname__}.__init__")

        self._meta = ProviderMeta(
            name=cls.__name__,
            token=token_key(token if token is not None else cls),
            scope=Scope.coerce(scope),
            provides=cls,
            module=cls.__module__,
            qualname=cls.__qualname__,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    @property
    def cls(self) -> type:
        return self._cls

    @property
    def dependencies(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._dependencies)

    def instantiate(self, ctx: ResolveCtx) -> Any:
        """Instantiate class by resolving dependencies."""
        return self._cls(**_resolve_dependencies(self._dependencies, ctx))


class FactoryProvider:
    """
    Provider that calls a factory function to produce instances.

    The produced type is taken from the factory's return annotation, or
    from the factory itself when it is a class.
    """

    __slots__ = ("_meta", "_factory", "_dependencies")

    def __init__(
        self,
        factory: Callable[..., Any],
        token: Any = None,
        scope: Scope | str = Scope.FACTORY,
        name: Optional[str] = None,
        provides: Optional[type] = None,
    ):
        if inspect.iscoroutinefunction(factory):
            raise DIError(
                f"Factory {getattr(factory, '__qualname__', factory)!r} is a coroutine function; "
                f"bindings are resolved synchronously during bootstrap"
            )

        self._factory = factory
        qualname = getattr(factory, "__qualname__", repr(factory))
        self._dependencies = _extract_dependencies(factory, qualname)

        if provides is None:
            provides = _return_type(factory)

        self._meta = ProviderMeta(
            name=name or getattr(factory, "__name__", "factory"),
            token=token_key(token) if token is not None else f"{getattr(factory, '__module__', '')}.{qualname}",
            scope=Scope.coerce(scope),
            provides=provides,
            module=getattr(factory, "__module__", ""),
            qualname=qualname,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    def instantiate(self, ctx: ResolveCtx) -> Any:
        """Call factory with resolved dependencies."""
        return self._factory(**_resolve_dependencies(self._dependencies, ctx))


def _return_type(factory: Callable[..., Any]) -> Optional[type]:
    if isinstance(factory, type):
        return factory
    try:
        hints = inspect.get_annotations(factory, eval_str=True)
    except Exception:
        return None
    ret = hints.get("return")
    return ret if isinstance(ret, type) else None


class ValueProvider:
    """Provider that returns a pre-bound constant value."""

    __slots__ = ("_meta", "_value")

    def __init__(
        self,
        value: Any,
        token: Any,
        name: Optional[str] = None,
    ):
        self._value = value
        self._meta = ProviderMeta(
            name=name or f"{type(value).__name__}_instance",
            token=token_key(token),
            scope=Scope.SINGLETON,
            provides=type(value),
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return self._value


class AliasProvider:
    """
    Provider that forwards to another binding.

    Scope is factory so the alias never caches on its own; the target's
    scope decides whether the instance is shared.
    """

    __slots__ = ("_meta", "_target")

    def __init__(
        self,
        token: Any,
        target: Any,
        provides: Optional[type] = None,
    ):
        self._target = token_key(target)
        self._meta = ProviderMeta(
            name=f"alias:{self._target}",
            token=token_key(token),
            scope=Scope.FACTORY,
            provides=provides,
        )

    @property
    def meta(self) -> ProviderMeta:
        return self._meta

    @property
    def target(self) -> str:
        return self._target

    def instantiate(self, ctx: ResolveCtx) -> Any:
        return ctx.resolve(self._target)
