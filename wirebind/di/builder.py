"""
Binding DSL used by application mappers.

Example:
    builder = ContainerBuilder()
    builder.bind(UserRepository).singleton(InMemoryUserRepository)
    builder.bind(UsersController).singleton()
    builder.bind(Clock).factory(lambda: SystemClock())
    container = builder.build()
"""

from typing import Any, Callable, Iterable, Optional
import inspect

from .core import Binding, Container
from .providers import ClassProvider, FactoryProvider, ValueProvider
from .scopes import Scope


class BindingDeclaration:
    """Pending ``bind(token)`` waiting for its provider kind."""

    __slots__ = ("_container", "_token", "_tags")

    def __init__(self, container: Container, token: Any, tags: Iterable[str] = ()):
        self._container = container
        self._token = token
        self._tags = tuple(tags)

    def singleton(self, target: Optional[Any] = None) -> Binding:
        """One shared instance, created on first resolve."""
        return self._register(target, Scope.SINGLETON)

    def factory(self, target: Optional[Any] = None) -> Binding:
        """A new instance on every resolve."""
        return self._register(target, Scope.FACTORY)

    def instance(self, value: Any) -> Binding:
        """A pre-built object."""
        provider = ValueProvider(value, token=self._token)
        return self._container.register(provider, token=self._token, capabilities=self._tags)

    def alias(self, target: Any) -> Binding:
        """Forward to an existing binding, sharing its instance."""
        return self._container.bind_alias(self._token, target, capabilities=self._tags)

    def _register(self, target: Optional[Any], scope: Scope) -> Binding:
        if target is None:
            target = self._token
        if inspect.isclass(target):
            provider = ClassProvider(target, scope=scope, token=self._token)
        elif callable(target):
            provider = FactoryProvider(
                target,
                token=self._token,
                scope=scope,
                name=getattr(self._token, "__name__", None),
            )
        else:
            raise TypeError(
                f"Cannot bind {self._token!r} to {target!r}: expected a class or callable"
            )
        return self._container.register(provider, token=self._token, capabilities=self._tags)


class ContainerBuilder:
    """
    Collects bindings in declaration order.

    Registration happens immediately so duplicate bindings fail at the
    declaring line rather than at build time.
    """

    def __init__(self, container: Optional[Container] = None, **container_kwargs):
        self._container = container or Container(**container_kwargs)

    @property
    def container(self) -> Container:
        return self._container

    def bind(self, token: Any, *, tags: Iterable[str] = ()) -> BindingDeclaration:
        return BindingDeclaration(self._container, token, tags)

    def import_module(self, module: Callable[["ContainerBuilder"], None]) -> "ContainerBuilder":
        """Apply a reusable group of bindings."""
        module(self)
        return self

    def build(self, *, freeze: bool = False) -> Container:
        if freeze:
            self._container.freeze()
        return self._container
