from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._errors import UnknownScopeError


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopeHandle:
    """Opaque token identifying an active scope."""

    id: str


class Scope:
    """Instance cache for scoped services, one per `begin_scope` call."""

    def __init__(self, scope_id: str) -> None:
        self.id = scope_id
        self.instances: dict[str, object] = {}
        # Re-entrant: a scoped service may depend on another scoped service.
        self._lock = threading.RLock()

    def get_or_create(self, name: str, build: Callable[[], object]) -> object:
        """Return the instance cached for `name`, building it at most once."""
        try:
            return self.instances[name]
        except KeyError:
            pass

        with self._lock:
            if name not in self.instances:
                self.instances[name] = build()
            return self.instances[name]

    def clear(self) -> None:
        with self._lock:
            self.instances.clear()


class ScopeManager:
    def __init__(self, *, strict: bool = False) -> None:
        self._scopes: dict[str, Scope] = {}
        self._lock = threading.Lock()
        self._strict = strict

    def begin(self) -> ScopeHandle:
        with self._lock:
            scope_id = uuid.uuid4().hex
            while scope_id in self._scopes:
                scope_id = uuid.uuid4().hex
            self._scopes[scope_id] = Scope(scope_id)

        logger.debug("Began scope %s", scope_id)
        return ScopeHandle(scope_id)

    def end(self, handle: ScopeHandle) -> None:
        with self._lock:
            scope = self._scopes.pop(handle.id, None)

        if scope is None:
            if self._strict:
                raise UnknownScopeError(handle.id)
            logger.debug("Scope %s is not active; nothing to end", handle.id)
            return

        scope.clear()
        logger.debug("Ended scope %s", handle.id)

    def get(self, handle: ScopeHandle) -> Scope:
        if not isinstance(handle, ScopeHandle):
            msg = f"Expected a ScopeHandle, got {type(handle).__name__}"
            raise TypeError(msg)

        scope = self._scopes.get(handle.id)
        if scope is None:
            raise UnknownScopeError(handle.id)
        return scope

    def clear(self) -> None:
        with self._lock:
            scopes = list(self._scopes.values())
            self._scopes.clear()

        for scope in scopes:
            scope.clear()
        if scopes:
            logger.debug("Ended %d active scope(s)", len(scopes))

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, ScopeHandle) and handle.id in self._scopes

    def __len__(self) -> int:
        return len(self._scopes)
