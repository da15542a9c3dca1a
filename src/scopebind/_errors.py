from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence


class ContainerError(RuntimeError):
    """Base class for every error raised by the container."""


class DuplicateServiceError(ContainerError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Service {name!r} is already registered.")


class ResolutionError(ContainerError):
    """Raised when a service cannot be resolved."""


class ServiceNotFoundError(ResolutionError, LookupError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No service registered for {name!r}.")


class ScopeRequiredError(ResolutionError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Service {name!r} is scoped and can only be resolved inside a scope.")


class UnknownScopeError(ResolutionError):
    def __init__(self, scope_id: str) -> None:
        self.scope_id = scope_id
        super().__init__(f"Scope {scope_id!r} is not active.")


class CircularDependencyError(ResolutionError):
    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        self.name = self.chain[-1]
        super().__init__(f"Circular dependency detected while resolving {self.name!r}: {' -> '.join(self.chain)}")


class UnresolvedDependencyError(ResolutionError):
    def __init__(self, service: str, dependency: str) -> None:
        self.service = service
        self.dependency = dependency
        super().__init__(f"Service {service!r} depends on {dependency!r}, which is not registered.")


class IllegalScopedInjectionError(ResolutionError):
    def __init__(self, service: str, dependency: str, chain: Sequence[str] = ()) -> None:
        self.service = service
        self.dependency = dependency
        self.chain = tuple(chain)
        msg = f"Singleton service {service!r} cannot depend on scoped service {dependency!r}"
        if len(self.chain) > 2:  # noqa: PLR2004
            msg += f" (via {' -> '.join(self.chain)})"
        super().__init__(msg + ".")
