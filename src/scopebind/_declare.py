"""Declaring classes as services.

Produces the ordered dependency list the container needs from a class's
constructor, and offers the `service` decorator to attach name/lifetime
metadata to a class. Decorated classes are not registered anywhere until
passed to `Container.register_service`.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, get_type_hints, overload

from ._registry import Key, Lifetime, service_key


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    T = TypeVar("T")


logger = logging.getLogger(__name__)

_DECLARATION_ATTR = "__scopebind_service__"


@dataclass(frozen=True)
class ServiceDeclaration:
    name: str
    lifetime: Lifetime | None = None
    # None means "discover from the constructor at registration time".
    dependencies: tuple[Key, ...] | None = None
    aliases: tuple[str, ...] = ()


@overload
def service(cls: type[T], /) -> type[T]: ...


@overload
def service(
    cls: None = ...,
    /,
    *,
    name: str | None = ...,
    lifetime: Lifetime | str | None = ...,
    depends_on: Iterable[object] | None = ...,
    aliases: Iterable[object] = ...,
) -> Callable[[type[T]], type[T]]: ...


def service(
    cls: type[T] | None = None,
    /,
    *,
    name: str | None = None,
    lifetime: Lifetime | str | None = None,
    depends_on: Iterable[object] | None = None,
    aliases: Iterable[object] = (),
) -> Any:
    """Mark a class as a service.

    Example:
      @service
      class Clock: ...

      @service(name="repo", lifetime=Lifetime.SCOPED, aliases=[Repository])
      class SqlRepository:
          def __init__(self, clock: Clock): ...

    The class's key becomes `name` (default: the class name), so resolving by the
    class itself finds the declared name.
    """

    def decorate(target: type[T]) -> type[T]:
        if not inspect.isclass(target):
            msg = f"@service can only decorate classes, got {target!r}"
            raise TypeError(msg)

        declared = service_key(name) if name is not None else target.__name__
        if not isinstance(declared, str):
            msg = "The container reference cannot be used as a service name."
            raise ValueError(msg)  # noqa: TRY004

        declaration = ServiceDeclaration(
            name=declared,
            lifetime=Lifetime(lifetime) if lifetime is not None else None,
            dependencies=tuple(service_key(d) for d in depends_on) if depends_on is not None else None,
            aliases=tuple(service_key(a) for a in aliases),  # type: ignore[misc]
        )
        setattr(target, _DECLARATION_ATTR, declaration)
        target.__service_key__ = declared  # type: ignore[attr-defined]
        return target

    if cls is not None:
        return decorate(cls)
    return decorate


def declaration_of(cls: type) -> ServiceDeclaration | None:
    """Return the declaration attached by `@service` (not inherited), or None."""
    if not inspect.isclass(cls):
        return None
    return vars(cls).get(_DECLARATION_ATTR)


def discover_dependencies(cls: type) -> tuple[Key, ...]:
    """Ordered dependency keys for the required positional parameters of `cls`.

    - annotated parameters use the annotation's key
    - unannotated parameters (and builtin annotations) use the parameter name
    - parameters with defaults, *args, **kwargs and keyword-only parameters are skipped.
    """
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        return ()

    hints = _get_init_type_hints(cls)
    dependencies: list[Key] = []

    for name, p in sig.parameters.items():
        if p.kind not in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            continue
        if p.default is not inspect.Parameter.empty:
            continue

        ann = hints.get(name, inspect.Parameter.empty)
        if inspect.isclass(ann) and getattr(ann, "__module__", "") != "builtins":
            dependencies.append(service_key(ann))
        else:
            dependencies.append(name)

    return tuple(dependencies)


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
