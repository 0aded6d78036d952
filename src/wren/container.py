"""Resolution registry: maps keys (usually types) to instances.

A binding's *concrete* is one of:

- an instance: returned as-is,
- a class: instantiated with no arguments,
- a function (or ``functools.partial``): called with the container.

Classes and functions run once and the result is cached for the life of
the process, unless the binding was registered with ``singleton=False``.
Cached instances are shared by every request; keep per-request state out
of them or guard it yourself.
"""

import functools
import inspect
import threading
from dataclasses import dataclass
from typing import Any

from wren.errors import UnknownBinding


@dataclass(frozen=True, slots=True)
class _Binding:
    concrete: Any
    singleton: bool


class Container:
    """Key → instance registry with lazily-built, cached singletons.

    Usage::

        container = Container()
        container.set(UserRepository, lambda c: UserRepository(c.get(Database)))
        repo = container.get(UserRepository)
    """

    __slots__ = ("_bindings", "_instances", "_lock")

    def __init__(self) -> None:
        self._bindings: dict[Any, _Binding] = {}
        self._instances: dict[Any, Any] = {}
        self._lock = threading.RLock()  # factories may resolve other bindings

    def set(self, key: Any, concrete: Any, *, singleton: bool = True) -> None:
        """Bind *key* to *concrete*, replacing any earlier binding."""
        with self._lock:
            self._bindings[key] = _Binding(concrete, singleton)
            self._instances.pop(key, None)

    def has(self, key: Any) -> bool:
        return key in self._bindings or key in self._instances

    def __contains__(self, key: object) -> bool:
        return self.has(key)

    def get(self, key: Any) -> Any:
        """Return the instance bound to *key*.

        Raises ``UnknownBinding`` when nothing is registered.
        """
        if key in self._instances:
            return self._instances[key]

        binding = self._bindings.get(key)
        if binding is None:
            raise UnknownBinding(key)

        if not binding.singleton:
            return self._build(binding.concrete)

        # Double-checked so concurrent first lookups build exactly once
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            instance = self._build(binding.concrete)
            self._instances[key] = instance
            return instance

    def _build(self, concrete: Any) -> Any:
        if inspect.isclass(concrete):
            return concrete()
        if inspect.isroutine(concrete) or isinstance(concrete, functools.partial):
            return concrete(self)
        return concrete
