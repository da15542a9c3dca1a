from __future__ import annotations

import dataclasses
import inspect
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._declare import declaration_of, discover_dependencies
from ._registry import CONTAINER, Lifetime, ServiceDescriptor, ServiceRegistry, service_key
from ._resolver import Resolver
from ._scope import ScopeHandle, ScopeManager
from ._settings import ContainerSettings


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    T = TypeVar("T")


logger = logging.getLogger(__name__)


class Container:
    """Dependency injection container.

    - register descriptors, types or factories
    - resolve by name or by class, dependencies first
    - lifetimes: singleton / transient / scoped
    - scopes created and ended explicitly by the caller.
    """

    # Classes annotated with `Container` receive the container itself.
    __service_key__ = CONTAINER

    def __init__(self, settings: ContainerSettings | None = None) -> None:
        self._settings = settings if settings is not None else ContainerSettings.load()
        self._registry = ServiceRegistry()
        self._scopes = ScopeManager(strict=self._settings.strict_scope_teardown)
        self._resolver = Resolver(
            self,
            self._registry,
            self._scopes,
            init_method=self._settings.init_method,
        )

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @overload
    def register(self, descriptor: ServiceDescriptor, /) -> ServiceDescriptor: ...

    @overload
    def register(
        self,
        token: type | str,
        impl: type | None = ...,
        *,
        factory: Callable[..., Any] | None = ...,
        lifetime: Lifetime | str | None = ...,
        depends_on: Iterable[object] | None = ...,
        aliases: Iterable[object] = ...,
    ) -> ServiceDescriptor: ...

    def register(
        self,
        token: ServiceDescriptor | type | str,
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime | str | None = None,
        depends_on: Iterable[object] | None = None,
        aliases: Iterable[object] = (),
    ) -> ServiceDescriptor:
        """Register a service.

        Either pass a ready `ServiceDescriptor`, or a token with a concrete type or a
        factory to build one.

        Example:
          container.register(ServiceDescriptor("db", Lifetime.SINGLETON, create_db))
          container.register(Repo, SqlRepo, lifetime=Lifetime.SCOPED)
          container.register("clock", factory=Clock, depends_on=["tz"])

        With `impl` and no `depends_on`, dependencies come from `impl.__init__`.
        Returns the descriptor stored by this container, which is a copy of a passed one.
        """
        if isinstance(token, ServiceDescriptor):
            if impl is not None or factory is not None or depends_on is not None or lifetime is not None or aliases:
                msg = "A ServiceDescriptor cannot be combined with other registration arguments."
                raise ValueError(msg)
            # A fresh copy: the singleton slot belongs to this container alone.
            descriptor = dataclasses.replace(token)
        else:
            descriptor = self._describe(token, impl, factory, lifetime, depends_on, aliases)

        self._registry.add(descriptor)
        return descriptor

    def _describe(
        self,
        token: type | str,
        impl: type | None,
        factory: Callable[..., Any] | None,
        lifetime: Lifetime | str | None,
        depends_on: Iterable[object] | None,
        aliases: Iterable[object],
    ) -> ServiceDescriptor:
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            if not inspect.isclass(token):
                msg = "Either `impl` or `factory` must be provided."
                raise ValueError(msg)
            # A class token registers itself.
            impl = token

        if impl is not None:
            if not inspect.isclass(impl):
                msg = f"`impl` must be a class, got {impl!r}"
                raise TypeError(msg)
            if inspect.isclass(token) and not self._is_protocol(token) and not issubclass(impl, token):
                msg = f"Implementation {impl.__name__} must be a subclass of {token.__name__}"
                raise TypeError(msg)
            factory = impl
            if depends_on is None:
                depends_on = discover_dependencies(impl)

        return ServiceDescriptor(
            name=service_key(token),  # type: ignore[arg-type]
            lifetime=Lifetime(lifetime) if lifetime is not None else self._settings.default_lifetime,
            factory=factory,  # type: ignore[arg-type]
            dependencies=tuple(depends_on or ()),
            aliases=tuple(aliases),
        )

    def register_service(self, cls: type) -> ServiceDescriptor:
        """Register a class decorated with `@service`."""
        declaration = declaration_of(cls)
        if declaration is None:
            msg = f"{getattr(cls, '__name__', cls)!r} is not decorated with @service"
            raise ValueError(msg)

        dependencies = declaration.dependencies
        if dependencies is None:
            dependencies = discover_dependencies(cls)

        return self.register(
            ServiceDescriptor(
                name=declaration.name,
                lifetime=declaration.lifetime or self._settings.default_lifetime,
                factory=cls,
                dependencies=dependencies,
                aliases=declaration.aliases,
            )
        )

    @overload
    def resolve(self, token: type[T], scope: ScopeHandle | None = None) -> T: ...

    @overload
    def resolve(self, token: str, scope: ScopeHandle | None = None) -> Any: ...

    def resolve(self, token: Any, scope: ScopeHandle | None = None) -> Any:
        """Resolve `token` (a name, a class or `CONTAINER`) to an instance.

        Scoped services need `scope`, a handle returned by `begin_scope`.
        """
        if not isinstance(token, str) and service_key(token) is CONTAINER:
            return self
        return self._resolver.resolve(token, scope)

    def begin_scope(self) -> ScopeHandle:
        return self._scopes.begin()

    def end_scope(self, scope: ScopeHandle) -> None:
        self._scopes.end(scope)

    @contextmanager
    def scope(self) -> Iterator[ScopeHandle]:
        """Begin a scope for the duration of a `with` block."""
        handle = self.begin_scope()
        try:
            yield handle
        finally:
            self.end_scope(handle)

    def clear(self) -> None:
        """Drop every registration and end every active scope."""
        self._scopes.clear()
        self._registry.clear()
        logger.debug("Cleared container")

    def validate(self) -> None:
        """Check the registered graph for wiring errors without building anything."""
        self._resolver.validate()

    def is_registered(self, token: object) -> bool:
        return token in self

    def __contains__(self, token: object) -> bool:
        try:
            return token in self._registry
        except (TypeError, ValueError):
            return False

    def __len__(self) -> int:
        return len(self._registry)

    @staticmethod
    def _is_protocol(tp: type) -> bool:
        return bool(getattr(tp, "_is_protocol", False))
