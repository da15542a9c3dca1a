from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from ._errors import DuplicateServiceError, ServiceNotFoundError


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


logger = logging.getLogger(__name__)


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


class _ContainerRef(Enum):
    CONTAINER = "container"

    def __repr__(self) -> str:
        return "CONTAINER"


# Dependency reference meaning "inject the container itself".
CONTAINER = _ContainerRef.CONTAINER

Key = Union[str, _ContainerRef]

_MISSING: Any = object()


def service_key(token: object) -> Key:
    """Normalize a lookup token to the key used by the registry.

    - strings are their own key
    - classes use ``__service_key__`` from their own ``__dict__`` (not inherited),
      falling back to ``__name__``
    - ``CONTAINER`` is passed through.
    """
    if token is CONTAINER:
        return CONTAINER

    if isinstance(token, str):
        if not token:
            msg = "Service keys must be non-empty strings."
            raise ValueError(msg)
        return token

    if inspect.isclass(token):
        key = vars(token).get("__service_key__")
        return key if key is not None else token.__name__

    msg = f"Cannot use {token!r} as a service key; expected a string or a class."
    raise TypeError(msg)


@dataclass(frozen=True, eq=False)
class ServiceDescriptor:
    """How to build a named service and what it needs.

    ``dependencies`` are passed to ``factory`` positionally, in declaration order.
    Only ``cached_instance`` changes after construction, and only once.
    """

    name: str
    lifetime: Lifetime
    factory: Callable[..., object]
    dependencies: tuple[Key, ...] = ()
    aliases: tuple[str, ...] = ()
    _instance: object = field(default=_MISSING, init=False, repr=False)

    def __post_init__(self) -> None:
        name = service_key(self.name)
        if name is CONTAINER:
            msg = "The container reference cannot be used as a service name."
            raise ValueError(msg)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "lifetime", Lifetime(self.lifetime))

        if not callable(self.factory):
            msg = f"Factory for service {name!r} is not callable: {self.factory!r}"
            raise TypeError(msg)

        if isinstance(self.dependencies, str) or isinstance(self.aliases, str):
            msg = "`dependencies` and `aliases` must be sequences, not a single string."
            raise TypeError(msg)
        object.__setattr__(self, "dependencies", tuple(service_key(dep) for dep in self.dependencies))

        aliases: list[str] = []
        for token in self.aliases:
            alias = service_key(token)
            if alias is CONTAINER:
                msg = "The container reference cannot be used as an alias."
                raise ValueError(msg)
            if alias != name and alias not in aliases:
                aliases.append(alias)
        object.__setattr__(self, "aliases", tuple(aliases))

    @property
    def keys(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    @property
    def has_instance(self) -> bool:
        return self._instance is not _MISSING

    @property
    def cached_instance(self) -> object | None:
        return None if self._instance is _MISSING else self._instance

    def cache_instance(self, instance: object) -> object:
        """Store the singleton instance unless one is already cached; return the cached one."""
        if self._instance is _MISSING:
            object.__setattr__(self, "_instance", instance)
        return self._instance


class ServiceRegistry:
    """Name (and alias) to descriptor mapping. Append-only apart from `clear`."""

    def __init__(self) -> None:
        self._descriptors: dict[str, ServiceDescriptor] = {}
        self._aliases: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, descriptor: ServiceDescriptor) -> None:
        with self._lock:
            for key in descriptor.keys:
                if key in self._descriptors or key in self._aliases:
                    raise DuplicateServiceError(key)

            self._descriptors[descriptor.name] = descriptor
            for alias in descriptor.aliases:
                self._aliases[alias] = descriptor.name

        logger.debug(
            "Registered %s service %r (dependencies: %s)",
            descriptor.lifetime.value,
            descriptor.name,
            descriptor.dependencies,
        )

    def find(self, token: object) -> ServiceDescriptor | None:
        if isinstance(token, str) and not token:
            return None
        key = service_key(token)
        if key is CONTAINER:
            return None
        name = self._aliases.get(key, key)
        return self._descriptors.get(name)

    def get(self, token: object) -> ServiceDescriptor:
        descriptor = self.find(token)
        if descriptor is None:
            raise ServiceNotFoundError(token if isinstance(token, str) else str(service_key(token)))
        return descriptor

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()
            self._aliases.clear()

    def __contains__(self, token: object) -> bool:
        return self.find(token) is not None

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        with self._lock:
            descriptors = list(self._descriptors.values())
        return iter(descriptors)
