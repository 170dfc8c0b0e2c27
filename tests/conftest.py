"""Shared fixtures for hushcall tests."""

import asyncio

import pytest


class Recorder:
    """Callable that records its calls and returns the running call count."""

    def __init__(self):
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return len(self.calls)

    @property
    def args(self):
        return [args for args, _ in self.calls]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
async def loop_errors():
    """Collect the contexts reported to the running loop's exception handler."""
    loop = asyncio.get_running_loop()
    errors = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: errors.append(context))
    yield errors
    loop.set_exception_handler(previous)
