"""Scheduler backends for suspend-capable handlers.

A driver takes a zero-argument thunk, calls it, and if the result is
awaitable runs it to completion on whatever concurrency primitive the
driver owns. Plain (non-awaitable) results come straight back.

``InlineDriver``
    No event loop. Steps the coroutine on the calling thread, resuming
    it every time it suspends with a bare yield (``await suspend()`` or
    ``await asyncio.sleep(0)``). Anything that needs a real loop stalls.

``AsyncioDriver``
    Runs the coroutine on an asyncio loop owned by the driver, one loop
    per calling thread.

``AnyioDriver``
    Runs the coroutine through ``anyio.run`` on the configured backend
    (``asyncio`` or ``trio``).

Loop drivers accept a ``timeout``; when it expires the handler is
cancelled and ``DispatchStalled`` is raised.
"""

import asyncio
import inspect
import logging
import threading
import types
from collections.abc import Awaitable, Coroutine, Generator
from typing import Any, Protocol, runtime_checkable

import anyio

from wren._internal.types import Thunk
from wren.config import AppConfig
from wren.errors import ConfigurationError, DispatchStalled

logger = logging.getLogger("wren.dispatch")


@runtime_checkable
class Driver(Protocol):
    """Protocol for dispatch backends."""

    name: str

    def run(self, thunk: Thunk) -> Any: ...

    def close(self) -> None: ...


@types.coroutine
def _bare_yield() -> Generator[None, None, None]:
    yield


async def suspend() -> None:
    """Give control back to the driver once, then continue.

    Works under ``InlineDriver``, ``AsyncioDriver`` and ``AnyioDriver``
    with the asyncio backend. Under trio use ``anyio.sleep(0)``.
    """
    await _bare_yield()


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _as_coroutine(awaitable: Awaitable[Any]) -> Coroutine[Any, Any, Any]:
    if inspect.iscoroutine(awaitable):
        return awaitable
    return _await(awaitable)


class InlineDriver:
    """Cooperative stepping on the calling thread, no event loop."""

    name = "inline"

    __slots__ = ("max_steps",)

    def __init__(self, max_steps: int = 10_000) -> None:
        self.max_steps = max_steps

    def run(self, thunk: Thunk) -> Any:
        result = thunk()
        if not inspect.isawaitable(result):
            return result

        coro = _as_coroutine(result)
        try:
            return self._step(coro)
        finally:
            # No-op once the coroutine has returned or raised
            coro.close()

    def _step(self, coro: Coroutine[Any, Any, Any]) -> Any:
        steps = 0
        while True:
            try:
                yielded = coro.send(None)
            except StopIteration as stop:
                return stop.value
            if yielded is not None:
                msg = (
                    f"Handler awaited {type(yielded).__name__}, which needs an event loop. "
                    f"Configure driver='asyncio' or driver='anyio'."
                )
                raise DispatchStalled(msg)
            if steps >= self.max_steps:
                msg = f"Handler was still suspending after {steps} resumptions"
                raise DispatchStalled(msg)
            steps += 1

    def close(self) -> None:
        pass


class AsyncioDriver:
    """Run handlers on a driver-owned asyncio loop (one per thread)."""

    name = "asyncio"

    __slots__ = ("_local", "_lock", "_loops", "timeout")

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        self._local = threading.local()
        self._loops: list[asyncio.AbstractEventLoop] = []
        self._lock = threading.Lock()

    def run(self, thunk: Thunk) -> Any:
        result = thunk()
        if not inspect.isawaitable(result):
            return result
        return self._loop().run_until_complete(self._main(result))

    async def _main(self, awaitable: Awaitable[Any]) -> Any:
        if self.timeout is None:
            return await awaitable
        deadline = asyncio.timeout(self.timeout)
        try:
            async with deadline:
                return await awaitable
        except TimeoutError as exc:
            if not deadline.expired():
                raise
            msg = f"Handler did not complete within {self.timeout}s"
            raise DispatchStalled(msg) from exc

    def _loop(self) -> asyncio.AbstractEventLoop:
        loop: asyncio.AbstractEventLoop | None = getattr(self._local, "loop", None)
        if loop is None or loop.is_closed():
            loop = asyncio.new_event_loop()
            self._local.loop = loop
            with self._lock:
                self._loops.append(loop)
        return loop

    def close(self) -> None:
        with self._lock:
            loops, self._loops = self._loops, []
        for loop in loops:
            if not loop.is_closed():
                loop.close()


class AnyioDriver:
    """Run handlers through ``anyio.run`` on the chosen backend."""

    name = "anyio"

    __slots__ = ("backend", "timeout")

    def __init__(self, backend: str = "asyncio", timeout: float | None = None) -> None:
        self.backend = backend
        self.timeout = timeout

    def run(self, thunk: Thunk) -> Any:
        result = thunk()
        if not inspect.isawaitable(result):
            return result
        return anyio.run(self._main, result, backend=self.backend)

    async def _main(self, awaitable: Awaitable[Any]) -> Any:
        with anyio.move_on_after(self.timeout):
            return await awaitable
        msg = f"Handler did not complete within {self.timeout}s"
        raise DispatchStalled(msg)

    def close(self) -> None:
        pass


def create_driver(name: str, config: AppConfig | None = None) -> Driver:
    """Build the driver called *name* using settings from *config*.

    ``"auto"`` picks ``AnyioDriver`` on the asyncio backend.
    """
    config = config or AppConfig()
    if name == "auto":
        logger.debug("Auto-selected anyio driver (asyncio backend)")
        return AnyioDriver(backend="asyncio", timeout=config.dispatch_timeout)
    if name == "inline":
        return InlineDriver(max_steps=config.inline_max_steps)
    if name == "asyncio":
        return AsyncioDriver(timeout=config.dispatch_timeout)
    if name == "anyio":
        return AnyioDriver(backend=config.anyio_backend, timeout=config.dispatch_timeout)
    msg = f"Unknown driver {name!r}"
    raise ConfigurationError(msg)
