"""Hook registry tests."""

import pytest

from docsmith.generation.hooks import (
    AFTER_PROCESSING,
    BEFORE_PROCESSING,
    HookError,
    HookRegistry,
)


async def test_handlers_run_in_order():
    """Each handler receives the previous handler's result."""
    hooks = HookRegistry()
    hooks.register(AFTER_PROCESSING, lambda text: text + " one")
    hooks.register(AFTER_PROCESSING, lambda text: text + " two")

    assert await hooks.run(AFTER_PROCESSING, "zero") == "zero one two"


async def test_async_handler_and_none_result():
    """Async handlers are awaited; returning None keeps the value."""
    seen = []

    async def record(value):
        seen.append(value)

    hooks = HookRegistry()
    hooks.register(BEFORE_PROCESSING, record)

    assert await hooks.run(BEFORE_PROCESSING, {"k": 1}) == {"k": 1}
    assert seen == [{"k": 1}]


async def test_no_handlers_returns_value():
    assert await HookRegistry().run(BEFORE_PROCESSING, "x") == "x"


async def test_raising_handler_short_circuits():
    """The first failing handler stops the chain."""
    calls = []

    def boom(value):
        raise RuntimeError("bad input")

    hooks = HookRegistry()
    hooks.register(BEFORE_PROCESSING, boom)
    hooks.register(BEFORE_PROCESSING, calls.append)

    with pytest.raises(HookError, match="bad input") as exc_info:
        await hooks.run(BEFORE_PROCESSING, "x")

    assert exc_info.value.hook == BEFORE_PROCESSING
    assert calls == []


async def test_returned_exception_is_failure():
    """A handler may signal failure by returning an Exception."""
    hooks = HookRegistry()
    hooks.register(AFTER_PROCESSING, lambda text: ValueError("rejected"))

    with pytest.raises(HookError, match="rejected"):
        await hooks.run(AFTER_PROCESSING, "text")


def test_unknown_hook_rejected():
    with pytest.raises(ValueError):
        HookRegistry().register("during_processing", lambda v: v)


async def test_error_callbacks_receive_error_and_context():
    """Error callbacks get the exception and context; their failures are contained."""
    received = []

    async def record(error, context):
        received.append((str(error), context))

    def broken(error, context):
        raise RuntimeError("callback bug")

    hooks = HookRegistry()
    hooks.on_error(broken)
    hooks.on_error(record)

    await hooks.notify_error(ValueError("unit failed"), {"unit": "add"})

    assert received == [("unit failed", {"unit": "add"})]
