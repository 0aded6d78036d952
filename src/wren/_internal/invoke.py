"""Suspend detection: decide once whether a handler needs async dispatch.

Wren handlers can be ``def`` or ``async def``. The router classifies each
handler when its route is registered so the request path never has to
introspect again. This module keeps the check in exactly one place.

Usage::

    from wren._internal.invoke import is_suspend_capable

    RouteDefinition(..., is_async=is_suspend_capable(handler))
"""

import functools
import inspect
from typing import Any


def is_suspend_capable(handler: Any) -> bool:
    """True if calling *handler* produces a coroutine.

    Sees through ``functools.partial``, bound methods and decorators that
    set ``__wrapped__``. Callable objects count when their ``__call__`` is
    ``async def``::

        async def show(id: int): ...          # True
        def index(): ...                      # False
        functools.partial(show, id=1)         # True

        class Export:
            async def __call__(self): ...

        Export()                              # True
    """
    target = handler
    while isinstance(target, functools.partial):
        target = target.func

    if inspect.iscoroutinefunction(target):
        return True

    unwrapped = inspect.unwrap(target)
    if unwrapped is not target and inspect.iscoroutinefunction(unwrapped):
        return True

    if not inspect.isroutine(target) and not inspect.isclass(target):
        call = getattr(target, "__call__", None)  # noqa: B004
        if call is not None and inspect.iscoroutinefunction(call):
            return True

    return False
