"""Dependency injection runtime with singleton, transient and scoped lifetimes.

This package provides a registry that builds, shares and discards service
instances on behalf of an application. Services are described by a name, a
lifetime, an ordered list of dependencies and a factory; the container resolves
dependencies first, shares instances according to the lifetime and rejects
circular or illegal wiring.

Exports:
- `Container`: register, resolve, begin/end scopes, clear.
- `ServiceDescriptor`: how to build a named service and what it depends on.
- `Lifetime`: singleton, transient or scoped sharing policy.
- `ScopeHandle`: opaque token for an active scope.
- `CONTAINER`: dependency reference that injects the container itself.
- `service` / `discover_dependencies`: declare classes as services.
- `ContainerSettings`: environment-driven configuration.
"""

from ._container import Container
from ._declare import ServiceDeclaration, declaration_of, discover_dependencies, service
from ._errors import (
    CircularDependencyError,
    ContainerError,
    DuplicateServiceError,
    IllegalScopedInjectionError,
    ResolutionError,
    ScopeRequiredError,
    ServiceNotFoundError,
    UnknownScopeError,
    UnresolvedDependencyError,
)
from ._registry import CONTAINER, Lifetime, ServiceDescriptor
from ._scope import ScopeHandle
from ._settings import ContainerSettings


__all__ = [
    "CONTAINER",
    "CircularDependencyError",
    "Container",
    "ContainerError",
    "ContainerSettings",
    "DuplicateServiceError",
    "IllegalScopedInjectionError",
    "Lifetime",
    "ResolutionError",
    "ScopeHandle",
    "ScopeRequiredError",
    "ServiceDeclaration",
    "ServiceDescriptor",
    "ServiceNotFoundError",
    "UnknownScopeError",
    "UnresolvedDependencyError",
    "declaration_of",
    "discover_dependencies",
    "service",
]
