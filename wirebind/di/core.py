"""
Core DI types and the container.

Defines the fundamental contracts for the DI system: provider metadata,
the resolution context, ordered bindings and the container that owns
them.
"""

from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
    runtime_checkable,
)
from dataclasses import dataclass, field
import time

from .errors import (
    ContainerFrozenError,
    DependencyCycleError,
    DuplicateBindingError,
    ProviderNotFoundError,
)
from .scopes import Scope

# Module-level cache: type -> "module.qualname" string
_type_key_cache: Dict[type, str] = {}


T = TypeVar("T")


def token_key(token: Any) -> str:
    """Convert a type or string token to its registry key."""
    if isinstance(token, str):
        return token
    if isinstance(token, type):
        key = _type_key_cache.get(token)
        if key is None:
            key = f"{token.__module__}.{token.__qualname__}"
            _type_key_cache[token] = key
        return key
    # Typing generics and other objects
    return str(token)


@dataclass(frozen=True, slots=True)
class ProviderMeta:
    """
    Compact, serializable provider metadata.
    """
    name: str
    token: str
    scope: Scope
    provides: Optional[type] = None  # Concrete type produced, when known
    module: str = ""
    qualname: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "token": self.token,
            "scope": self.scope.value,
            "provides": token_key(self.provides) if self.provides else None,
            "module": self.module,
            "qualname": self.qualname,
        }


class ResolveCtx:
    """
    Context for one top-level resolution.

    Tracks the resolution stack for cycle detection and diagnostics.
    Providers resolve their own dependencies through it.
    """
    __slots__ = ("container", "stack")

    def __init__(self, container: "Container"):
        self.container = container
        self.stack: List[str] = []

    def push(self, key: str) -> None:
        self.stack.append(key)

    def pop(self) -> None:
        self.stack.pop()

    def in_cycle(self, key: str) -> bool:
        return key in self.stack

    def get_trace(self) -> List[str]:
        return self.stack.copy()

    def resolve(self, token: Any, *, optional: bool = False) -> Any:
        """Resolve a nested dependency within this context."""
        return self.container._resolve(token_key(token), self, optional=optional)


@runtime_checkable
class Provider(Protocol):
    """
    Provider protocol - how to produce an instance for a binding.
    """

    @property
    def meta(self) -> ProviderMeta:
        ...

    def instantiate(self, ctx: ResolveCtx) -> Any:
        ...


@dataclass(frozen=True)
class Binding:
    """
    A declared mapping from a token to a provider.

    ``order`` is the declaration index within the owning container and
    defines enumeration order.
    """
    key: str
    provider: Provider
    order: int
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def scope(self) -> Scope:
        return self.provider.meta.scope

    @property
    def name(self) -> str:
        return self.provider.meta.name

    @property
    def provides(self) -> Optional[type]:
        return self.provider.meta.provides

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "order": self.order,
            "capabilities": sorted(self.capabilities),
            **self.provider.meta.to_dict(),
        }


CapabilityDetector = Callable[[type], bool]


def default_detectors() -> Dict[str, CapabilityDetector]:
    """Capability detectors applied to every binding with a known type."""
    from ..controller.base import CONTROLLER, is_controller_type
    return {CONTROLLER: is_controller_type}


class Container:
    """
    DI Container - ordered bindings plus resolution.

    Bindings keep their declaration order. Singleton instances are cached
    on first resolve; factory bindings produce a new instance every time.
    Resolving ``Container`` itself returns this container.
    """

    __slots__ = (
        "_bindings",
        "_cache",
        "_frozen",
        "_detectors",
        "_diagnostics",
        "name",
    )

    def __init__(
        self,
        name: str = "app",
        *,
        detectors: Optional[Mapping[str, CapabilityDetector]] = None,
        diagnostics: Optional[Any] = None,
    ):
        from .diagnostics import DIDiagnostics

        self.name = name
        self._bindings: Dict[str, Binding] = {}  # insertion ordered
        self._cache: Dict[str, Any] = {}
        self._frozen = False
        self._detectors = dict(default_detectors() if detectors is None else detectors)
        self._diagnostics = diagnostics or DIDiagnostics()

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def register(
        self,
        provider: Provider,
        *,
        token: Any = None,
        capabilities: Iterable[str] = (),
    ) -> Binding:
        """
        Register a provider.

        Args:
            provider: Provider instance
            token: Token to bind under (defaults to the provider's own token)
            capabilities: Explicit capability tags for this binding

        Returns:
            The created binding
        """
        meta = provider.meta
        key = token_key(token) if token is not None else meta.token

        if self._frozen:
            raise ContainerFrozenError(key)

        if key in self._bindings:
            existing = self._bindings[key]
            # Idempotency: same provider object is a no-op
            if existing.provider is provider:
                return existing
            raise DuplicateBindingError(key, existing.name)

        caps = set(capabilities)
        provided = meta.provides
        if provided is not None:
            for capability, detect in self._detectors.items():
                if detect(provided):
                    caps.add(capability)

        binding = Binding(
            key=key,
            provider=provider,
            order=len(self._bindings),
            capabilities=frozenset(caps),
        )
        self._bindings[key] = binding

        from .diagnostics import DIEventType
        self._diagnostics.emit(
            DIEventType.REGISTRATION,
            token=key,
            provider_name=meta.name,
            metadata={"scope": meta.scope.value, "capabilities": sorted(caps)},
        )
        return binding

    def bind(
        self,
        interface: Type,
        implementation: Optional[Type] = None,
        scope: Scope | str = Scope.SINGLETON,
        *,
        capabilities: Iterable[str] = (),
    ) -> Binding:
        """
        Bind an interface to an implementation class.

        Example:
            container.bind(UserRepository, InMemoryUserRepository)
        """
        from .providers import ClassProvider
        provider = ClassProvider(implementation or interface, scope=scope)
        return self.register(provider, token=interface, capabilities=capabilities)

    def bind_factory(
        self,
        token: Any,
        factory: Callable[..., Any],
        scope: Scope | str = Scope.FACTORY,
        *,
        capabilities: Iterable[str] = (),
    ) -> Binding:
        """Bind a token to a factory callable."""
        from .providers import FactoryProvider
        provider = FactoryProvider(factory, token=token, scope=scope)
        return self.register(provider, token=token, capabilities=capabilities)

    def bind_instance(
        self,
        token: Any,
        instance: Any,
        *,
        capabilities: Iterable[str] = (),
    ) -> Binding:
        """Bind a token to a pre-built object (always singleton)."""
        from .providers import ValueProvider
        provider = ValueProvider(instance, token=token)
        return self.register(provider, token=token, capabilities=capabilities)

    def bind_alias(
        self,
        token: Any,
        target: Any,
        *,
        capabilities: Iterable[str] = (),
    ) -> Binding:
        """Expose an existing binding under another token."""
        from .providers import AliasProvider
        target_binding = self.get_binding(target)
        provides = target_binding.provides if target_binding else None
        provider = AliasProvider(token=token, target=target, provides=provides)
        return self.register(provider, token=token, capabilities=capabilities)

    def freeze(self) -> None:
        """Stop accepting bindings."""
        if self._frozen:
            return
        self._frozen = True
        from .diagnostics import DIEventType
        self._diagnostics.emit(DIEventType.FROZEN, metadata={"bindings": len(self._bindings)})

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def diagnostics(self):
        return self._diagnostics

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def bindings(self) -> Tuple[Binding, ...]:
        """All bindings in declaration order."""
        return tuple(self._bindings.values())

    def with_capability(self, capability: str) -> Tuple[Binding, ...]:
        """Bindings carrying ``capability``, in declaration order."""
        return tuple(b for b in self._bindings.values() if capability in b.capabilities)

    def get_binding(self, token: Any) -> Optional[Binding]:
        return self._bindings.get(token_key(token))

    def is_registered(self, token: Any) -> bool:
        return token_key(token) in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, token: Any) -> bool:
        return self.is_registered(token)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, token: Type[T] | str, *, optional: bool = False) -> T:
        """
        Resolve a dependency.

        Args:
            token: Type or string key
            optional: If True, return None if not found instead of raising

        Raises:
            ProviderNotFoundError: If no binding exists and not optional
            DependencyCycleError: If the binding depends on itself
        """
        return self._resolve(token_key(token), ResolveCtx(self), optional=optional)

    def resolve_binding(self, binding: Binding) -> Any:
        """Resolve the instance for an enumerated binding."""
        return self._resolve(binding.key, ResolveCtx(self))

    def _resolve(self, key: str, ctx: ResolveCtx, *, optional: bool = False) -> Any:
        if key == _CONTAINER_KEY:
            return self

        # Fast path: cached singleton
        if key in self._cache:
            return self._cache[key]

        binding = self._bindings.get(key)
        if binding is None:
            if optional:
                return None
            self._raise_not_found(key, ctx)

        if ctx.in_cycle(key):
            raise DependencyCycleError(ctx.get_trace() + [key])

        ctx.push(key)
        started = time.perf_counter() if self._diagnostics.enabled else 0.0
        try:
            instance = binding.provider.instantiate(ctx)
        except Exception as e:
            from .diagnostics import DIEventType
            self._diagnostics.emit(DIEventType.RESOLUTION_FAILURE, token=key, error=e)
            raise
        finally:
            ctx.pop()

        if binding.scope.cacheable:
            self._cache[key] = instance

        if self._diagnostics.enabled:
            from .diagnostics import DIEventType
            self._diagnostics.emit(
                DIEventType.RESOLUTION_SUCCESS,
                token=key,
                provider_name=binding.name,
                duration=time.perf_counter() - started,
            )
        return instance

    def _raise_not_found(self, key: str, ctx: ResolveCtx) -> None:
        """Raise ProviderNotFoundError with near-miss candidates."""
        short = key.rsplit(".", 1)[-1].lower()
        candidates = [
            k for k in self._bindings
            if k.rsplit(".", 1)[-1].lower() == short or short in k.lower()
        ]
        trace = ctx.get_trace()
        raise ProviderNotFoundError(
            token=key,
            candidates=candidates,
            requested_by=trace[-1] if trace else None,
        )

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<Container {self.name!r} bindings={len(self._bindings)} {state}>"


_CONTAINER_KEY = token_key(Container)
