"""Tests for wren.container: the resolution registry."""

import functools
import threading

import pytest

from wren.container import Container
from wren.errors import UnknownBinding


class Clock:
    pass


class Repository:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock


class TestBindings:
    def test_instance_returned_as_is(self) -> None:
        container = Container()
        clock = Clock()
        container.set(Clock, clock)
        assert container.get(Clock) is clock

    def test_class_instantiated_once(self) -> None:
        container = Container()
        container.set(Clock, Clock)
        first = container.get(Clock)
        assert isinstance(first, Clock)
        assert container.get(Clock) is first

    def test_factory_called_with_container(self) -> None:
        container = Container()
        container.set(Clock, Clock)
        container.set(Repository, lambda c: Repository(c.get(Clock)))
        repo = container.get(Repository)
        assert repo.clock is container.get(Clock)

    def test_partial_factory(self) -> None:
        def build(label: str, container: Container) -> str:
            return label

        container = Container()
        container.set("label", functools.partial(build, "wren"))
        assert container.get("label") == "wren"

    def test_non_singleton_builds_every_time(self) -> None:
        container = Container()
        container.set(Clock, Clock, singleton=False)
        assert container.get(Clock) is not container.get(Clock)

    def test_string_keys(self) -> None:
        container = Container()
        container.set("config.name", "wren")
        assert container.get("config.name") == "wren"

    def test_rebinding_drops_cached_instance(self) -> None:
        container = Container()
        container.set(Clock, Clock)
        first = container.get(Clock)
        container.set(Clock, Clock)
        assert container.get(Clock) is not first


class TestLookup:
    def test_has(self) -> None:
        container = Container()
        assert not container.has(Clock)
        container.set(Clock, Clock)
        assert container.has(Clock)
        assert Clock in container

    def test_unknown_binding(self) -> None:
        with pytest.raises(UnknownBinding) as exc_info:
            Container().get(Clock)
        assert exc_info.value.key is Clock
        assert "Clock" in str(exc_info.value)

    def test_unknown_binding_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            Container().get("missing")


class TestConcurrency:
    def test_singleton_built_once_across_threads(self) -> None:
        calls: list[int] = []
        barrier = threading.Barrier(8)

        def build(container: Container) -> object:
            calls.append(1)
            return object()

        container = Container()
        container.set("service", build)
        results: list[object] = []

        def worker() -> None:
            barrier.wait()
            results.append(container.get("service"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_nested_singleton_factories(self) -> None:
        container = Container()
        container.set(Clock, lambda c: Clock())
        container.set(Repository, lambda c: Repository(c.get(Clock)))
        assert isinstance(container.get(Repository).clock, Clock)
