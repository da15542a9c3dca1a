from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from ._errors import (
    CircularDependencyError,
    IllegalScopedInjectionError,
    ScopeRequiredError,
    UnresolvedDependencyError,
)
from ._registry import CONTAINER, Lifetime


if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._container import Container
    from ._registry import Key, ServiceDescriptor, ServiceRegistry
    from ._scope import Scope, ScopeHandle, ScopeManager


logger = logging.getLogger(__name__)


class ResolutionContext:
    """State of one top-level `resolve` call: the active scope and the in-flight chain."""

    def __init__(self, scope: Scope | None = None) -> None:
        self.scope = scope
        self._chain: list[ServiceDescriptor] = []
        self._names: set[str] = set()

    @property
    def chain(self) -> tuple[str, ...]:
        return tuple(d.name for d in self._chain)

    @contextmanager
    def guard(self, descriptor: ServiceDescriptor) -> Iterator[None]:
        """Mark `descriptor` as under construction for the duration of the block."""
        if descriptor.name in self._names:
            raise CircularDependencyError([*self.chain, descriptor.name])

        self._chain.append(descriptor)
        self._names.add(descriptor.name)
        try:
            yield
        finally:
            self._chain.pop()
            self._names.discard(descriptor.name)

    def singleton_owner(self) -> ServiceDescriptor | None:
        """Innermost singleton currently under construction, if any."""
        for descriptor in reversed(self._chain):
            if descriptor.lifetime is Lifetime.SINGLETON:
                return descriptor
        return None

    def path_from(self, owner: ServiceDescriptor, dependency: ServiceDescriptor) -> tuple[str, ...]:
        names = self.chain
        return (*names[names.index(owner.name) :], dependency.name)


class Resolver:
    """Depth-first, dependency-first construction of services.

    Lifetime rules:
    - singleton: built once, cached on its descriptor
    - scoped: built once per scope, cached in the scope
    - transient: built on every resolution.
    """

    def __init__(
        self,
        container: Container,
        registry: ServiceRegistry,
        scopes: ScopeManager,
        *,
        init_method: str | None = None,
    ) -> None:
        self._container = container
        self._registry = registry
        self._scopes = scopes
        self._init_method = init_method
        # Singleton locks are never held while waiting on a scope lock.
        self._singleton_locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def resolve(self, token: object, scope: ScopeHandle | None = None) -> object:
        active = self._scopes.get(scope) if scope is not None else None
        descriptor = self._registry.get(token)
        return self._resolve(descriptor, ResolutionContext(active))

    def _resolve(self, descriptor: ServiceDescriptor, ctx: ResolutionContext) -> object:
        if descriptor.lifetime is Lifetime.SCOPED:
            if ctx.scope is None:
                raise ScopeRequiredError(descriptor.name)
            return ctx.scope.get_or_create(descriptor.name, lambda: self._construct(descriptor, ctx))

        if descriptor.lifetime is Lifetime.SINGLETON:
            if descriptor.has_instance:
                return descriptor.cached_instance

            with self._singleton_lock(descriptor):
                if not descriptor.has_instance:
                    descriptor.cache_instance(self._construct(descriptor, ctx))
                return descriptor.cached_instance

        return self._construct(descriptor, ctx)

    def _singleton_lock(self, descriptor: ServiceDescriptor) -> threading.RLock:
        with self._locks_guard:
            lock = self._singleton_locks.get(descriptor.name)
            if lock is None:
                lock = self._singleton_locks[descriptor.name] = threading.RLock()
            return lock

    def _construct(self, descriptor: ServiceDescriptor, ctx: ResolutionContext) -> object:
        with ctx.guard(descriptor):
            args = [self._resolve_dependency(descriptor, ref, ctx) for ref in descriptor.dependencies]
            instance = descriptor.factory(*args)
            logger.debug("Constructed %s service %r", descriptor.lifetime.value, descriptor.name)
            self._initialize(instance)

        return instance

    def _resolve_dependency(self, owner: ServiceDescriptor, ref: Key, ctx: ResolutionContext) -> object:
        if ref is CONTAINER:
            return self._container

        dependency = self._registry.find(ref)
        if dependency is None:
            raise UnresolvedDependencyError(owner.name, str(ref))

        if dependency.lifetime is Lifetime.SCOPED:
            singleton = ctx.singleton_owner()
            if singleton is not None:
                raise IllegalScopedInjectionError(
                    singleton.name,
                    dependency.name,
                    ctx.path_from(singleton, dependency),
                )

        return self._resolve(dependency, ctx)

    def _initialize(self, instance: object) -> None:
        if not self._init_method:
            return

        hook = getattr(instance, self._init_method, None)
        if callable(hook):
            hook()

    def validate(self) -> None:
        """Walk the whole graph and raise the first wiring error, constructing nothing."""
        checked: set[tuple[str, bool]] = set()
        for descriptor in self._registry:
            self._validate(descriptor, [], checked)

    def _validate(
        self,
        descriptor: ServiceDescriptor,
        path: list[ServiceDescriptor],
        checked: set[tuple[str, bool]],
    ) -> None:
        path = [*path, descriptor]
        singletons = [d for d in path if d.lifetime is Lifetime.SINGLETON]
        marker = (descriptor.name, bool(singletons))
        if marker in checked:
            return

        for ref in descriptor.dependencies:
            if ref is CONTAINER:
                continue

            dependency = self._registry.find(ref)
            if dependency is None:
                raise UnresolvedDependencyError(descriptor.name, str(ref))

            names = [d.name for d in path]
            if dependency.name in names:
                raise CircularDependencyError([*names, dependency.name])

            if dependency.lifetime is Lifetime.SCOPED and singletons:
                owner = singletons[-1]
                raise IllegalScopedInjectionError(
                    owner.name,
                    dependency.name,
                    (*names[names.index(owner.name) :], dependency.name),
                )

            self._validate(dependency, path, checked)

        checked.add(marker)
