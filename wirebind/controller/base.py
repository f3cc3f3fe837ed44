"""
Controller capability and the container-aware controller base class.

Anything exposing ``register_routes(router)`` is a controller; the
binder finds such bindings by capability, never by class hierarchy.
:class:`ContainerController` is an optional convenience base that holds
the container and resolves its dependencies lazily.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Optional, Protocol, Type, TypeVar, runtime_checkable

from ..di.core import Container

if TYPE_CHECKING:
    from ..application import Application
    from ..routing.router import Router


T = TypeVar("T")

#: Capability tag carried by controller bindings
CONTROLLER = "controller"


@runtime_checkable
class Controller(Protocol):
    """Capability: attach routes to a routing surface."""

    def register_routes(self, router: "Router") -> None:
        ...


def is_controller_type(cls: Any) -> bool:
    """Structural check on a class: does it expose ``register_routes``?"""
    return isinstance(cls, type) and callable(getattr(cls, "register_routes", None))


def is_controller(obj: Any) -> bool:
    """Structural check on an instance."""
    return callable(getattr(obj, "register_routes", None))


def controller_label(controller: Any) -> str:
    """Human readable name used in logs and route ownership."""
    label = getattr(controller, "label", None)
    if isinstance(label, str) and label:
        return label
    return type(controller).__qualname__


class inject(Generic[T]):
    """
    Lazily resolved dependency on a :class:`ContainerController`.

        class UsersController(ContainerController):
            repository = inject(UserRepository)

    Resolved on first access from ``self.container`` and cached on the
    instance afterwards.
    """

    def __init__(self, token: Type[T] | str, *, optional: bool = False):
        self.token = token
        self.optional = optional
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> T:
        if obj is None:
            return self
        value = obj.container.resolve(self.token, optional=self.optional)
        obj.__dict__[self.name] = value
        return value


class ContainerController(ABC):
    """
    Base class for controllers that pull dependencies from the container.

    Subclasses implement :meth:`register_routes` and declare their
    dependencies with :class:`inject`.
    """

    def __init__(self, container: Container):
        self.container = container

    @property
    def application(self) -> "Application":
        """The application handle bound in the container."""
        from ..application import Application
        return self.container.resolve(Application)

    def href(self, route: Any) -> str:
        """URL of a typed route instance."""
        return self.application.href(route)

    @abstractmethod
    def register_routes(self, router: "Router") -> None:
        """Attach this controller's routes to ``router``."""

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__}>"
