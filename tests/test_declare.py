from __future__ import annotations

import logging
import unittest

import pytest

from scopebind import (
    CONTAINER,
    Container,
    Lifetime,
    declaration_of,
    discover_dependencies,
    service,
)


class Clock: ...


class Repository:
    def __init__(self, clock: Clock, table, retries: int = 3):
        self.clock = clock
        self.table = table
        self.retries = retries


class UsesForwardRef:
    def __init__(self, later: DefinedLater):
        self.later = later


class DefinedLater: ...


class WithVariadics:
    def __init__(self, clock: Clock, /, name: str, *args, flag: bool, **kwargs):
        self.clock = clock
        self.name = name


class TestDiscoverDependencies(unittest.TestCase):
    def test_discovers_annotated_and_named_parameters_in_order(self):
        assert discover_dependencies(Repository) == ("Clock", "table")

    def test_class_without_init_has_no_dependencies(self):
        assert discover_dependencies(Clock) == ()

    def test_string_annotations_are_evaluated(self):
        assert discover_dependencies(UsesForwardRef) == ("DefinedLater",)

    def test_builtin_annotations_fall_back_to_parameter_name(self):
        assert discover_dependencies(WithVariadics) == ("Clock", "name")

    def test_container_annotation_maps_to_container_reference(self):
        class NeedsContainer:
            def __init__(self, container: Container, clock: Clock):
                self.container = container

        assert discover_dependencies(NeedsContainer) == (CONTAINER, "Clock")

    def test_inherited_init_is_used(self):
        class SqlRepository(Repository): ...

        assert discover_dependencies(SqlRepository) == ("Clock", "table")


def test_unresolvable_forward_reference_falls_back_to_names(caplog):
    class Broken:
        def __init__(self, dep: DoesNotExist):  # noqa: F821
            self.dep = dep

    with caplog.at_level(logging.WARNING, logger="scopebind._declare"):
        assert discover_dependencies(Broken) == ("dep",)

    assert "DoesNotExist" in caplog.text


def test_service_decorator_bare_uses_class_name_and_defaults():
    @service
    class Plain: ...

    declaration = declaration_of(Plain)
    assert declaration is not None
    assert declaration.name == "Plain"
    assert declaration.lifetime is None
    assert declaration.dependencies is None


def test_service_decorator_with_name_changes_class_key():
    @service(name="clock", lifetime=Lifetime.SINGLETON)
    class SystemClock: ...

    c = Container()
    descriptor = c.register_service(SystemClock)

    assert descriptor.name == "clock"
    assert descriptor.lifetime is Lifetime.SINGLETON
    assert c.resolve(SystemClock) is c.resolve("clock")


def test_register_service_discovers_dependencies_at_registration_time():
    @service(lifetime="scoped")
    class Handler:
        def __init__(self, clock: Clock):
            self.clock = clock

    c = Container()
    c.register(Clock, lifetime=Lifetime.SINGLETON)
    c.register_service(Handler)

    with c.scope() as scope:
        handler = c.resolve(Handler, scope)
        assert handler.clock is c.resolve(Clock)


def test_register_service_uses_explicit_dependencies_and_aliases():
    class Store: ...

    @service(name="memory", depends_on=["prefix"], aliases=[Store])
    class MemoryStore:
        def __init__(self, prefix):
            self.prefix = prefix

    c = Container()
    c.register("prefix", factory=lambda: "app:")
    c.register_service(MemoryStore)

    store = c.resolve(Store)
    assert isinstance(store, MemoryStore)
    assert store.prefix == "app:"


def test_register_service_uses_settings_default_lifetime():
    @service
    class Worker: ...

    c = Container()
    assert c.register_service(Worker).lifetime is c.settings.default_lifetime


def test_register_service_rejects_undecorated_class():
    class Undecorated: ...

    with pytest.raises(ValueError, match="@service"):
        Container().register_service(Undecorated)


def test_declaration_is_not_inherited():
    @service(name="base")
    class Base: ...

    class Child(Base): ...

    assert declaration_of(Child) is None
    assert discover_dependencies(Child) == ()


def test_service_decorator_rejects_non_class():
    with pytest.raises(TypeError):
        service(lambda: None)  # type: ignore[call-overload]
