"""Fire-and-forget job dispatch.

Learn: Some writes (recording a token fingerprint, deleting a user) are
not worth making the caller wait for. Inside a request they go through
FastAPI's BackgroundTasks.add_task, which runs after the response is
sent. Outside a request (CLI, service tests) spawn() has the same
signature and schedules the coroutine on the running loop.

Neither path gives the caller a join point. Jobs must log their own
failures — nobody is waiting to receive an exception.
"""

import asyncio
from typing import Any, Awaitable, Callable

# Strong references so pending tasks are not garbage-collected mid-flight.
_pending: set[asyncio.Task] = set()

Schedule = Callable[..., Any]


def spawn(func: Callable[..., Awaitable[Any]], *args, **kwargs) -> None:
    """Schedule func(*args, **kwargs) on the running loop and return immediately."""
    task = asyncio.create_task(func(*args, **kwargs))
    _pending.add(task)
    task.add_done_callback(_pending.discard)


async def drain() -> None:
    """Wait for every job spawned so far (shutdown, tests)."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
