"""Handler dispatch: direct calls for plain handlers, drivers for async ones.

Drivers:
    InlineDriver -- Steps coroutines on the calling thread, no event loop
    AsyncioDriver -- Driver-owned asyncio loop
    AnyioDriver -- ``anyio.run`` on the asyncio or trio backend
"""

from wren.dispatch.drivers import (
    AnyioDriver,
    AsyncioDriver,
    Driver,
    InlineDriver,
    create_driver,
    suspend,
)
from wren.dispatch.gate import DispatchGate

__all__ = [
    "AnyioDriver",
    "AsyncioDriver",
    "DispatchGate",
    "Driver",
    "InlineDriver",
    "create_driver",
    "suspend",
]
