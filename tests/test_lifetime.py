import unittest

import pytest

from scopebind import Container, Lifetime, ScopeRequiredError, ServiceDescriptor


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_register_singleton_returns_same_instance(self):
        class A: ...

        self.cont.register(A, impl=A, lifetime=Lifetime.SINGLETON)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_resolve_register_transient_returns_new_instances(self):
        class A: ...

        self.cont.register(A, impl=A, lifetime=Lifetime.TRANSIENT)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_resolve_scoped_returns_same_instance_within_a_scope(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        scope = self.cont.begin_scope()
        assert self.cont.resolve(A, scope) is self.cont.resolve(A, scope)

    def test_resolve_scoped_returns_distinct_instances_across_scopes(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        h1 = self.cont.begin_scope()
        h2 = self.cont.begin_scope()
        assert self.cont.resolve(A, h1) is not self.cont.resolve(A, h2)

    def test_resolve_scoped_without_scope_raises(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        with pytest.raises(ScopeRequiredError) as exc_info:
            self.cont.resolve(A)
        assert exc_info.value.name == "A"

    def test_singleton_is_shared_between_scopes_and_unscoped_resolution(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SINGLETON)
        with self.cont.scope() as scope:
            inside = self.cont.resolve(A, scope)
        assert self.cont.resolve(A) is inside

    def test_transient_inside_scope_is_still_new_every_time(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.TRANSIENT)
        with self.cont.scope() as scope:
            assert self.cont.resolve(A, scope) is not self.cont.resolve(A, scope)

    def test_default_lifetime_is_transient(self):
        class A: ...

        descriptor = self.cont.register(A)
        assert descriptor.lifetime is Lifetime.TRANSIENT


def test_singleton_factory_called_once():
    calls = []

    def make():
        calls.append(1)
        return object()

    c = Container()
    c.register(ServiceDescriptor("thing", Lifetime.SINGLETON, make))
    first = c.resolve("thing")
    assert c.resolve("thing") is first
    assert len(calls) == 1


def test_singleton_cached_none_is_not_rebuilt():
    calls = []

    def make():
        calls.append(1)

    c = Container()
    c.register("nothing", factory=make, lifetime=Lifetime.SINGLETON)
    assert c.resolve("nothing") is None
    assert c.resolve("nothing") is None
    assert len(calls) == 1


def test_singleton_cached_instance_is_set_once():
    c = Container()
    descriptor = c.register("x", factory=object, lifetime=Lifetime.SINGLETON)
    assert not descriptor.has_instance
    assert descriptor.cached_instance is None

    instance = c.resolve("x")
    assert descriptor.has_instance
    assert descriptor.cache_instance(object()) is instance
    assert descriptor.cached_instance is instance


def test_transient_descriptor_never_caches():
    c = Container()
    descriptor = c.register("x", factory=object, lifetime=Lifetime.TRANSIENT)
    c.resolve("x")
    assert not descriptor.has_instance
