import asyncio
from collections.abc import Iterator
from contextlib import contextmanager


def task_repr(task: asyncio.Task) -> str:
    """Get a task representation with debug info."""
    coro = task.get_coro()
    name = getattr(coro, "__qualname__", None)
    if name:
        return f"{task.get_name()} ({name})"
    return task.get_name()


@contextmanager
def install_exception_handler(handler) -> Iterator[None]:
    loop = asyncio.get_running_loop()
    existing = loop.get_exception_handler()
    loop.set_exception_handler(handler)
    try:
        yield
    finally:
        loop.set_exception_handler(existing)
