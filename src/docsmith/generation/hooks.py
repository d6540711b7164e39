"""Extension points run around each unit."""

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

BEFORE_PROCESSING = "before_processing"
AFTER_PROCESSING = "after_processing"
HOOK_NAMES = (BEFORE_PROCESSING, AFTER_PROCESSING)

# A handler takes the current value and returns the (possibly new) value, or
# an Exception instance to signal failure. It may be sync or async.
Handler = Callable[[Any], Any]
ErrorCallback = Callable[[BaseException, Any], Awaitable[None] | None]


class HookError(Exception):
    """Raised when a hook handler fails."""

    def __init__(self, hook: str, handler: str, message: str):
        super().__init__(f"Hook {hook} handler {handler} failed: {message}")
        self.hook = hook
        self.handler = handler


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class HookRegistry:
    """Ordered handlers per hook plus error notification callbacks.

    Handlers run in registration order. The first failure stops the chain
    and surfaces as a HookError.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._error_callbacks: list[ErrorCallback] = []

    def register(self, hook: str, handler: Handler) -> None:
        """Append a handler to a hook.

        Raises:
            ValueError: If hook is not a known hook name.
        """
        if hook not in HOOK_NAMES:
            raise ValueError(f"Unknown hook: {hook}")
        self._handlers[hook].append(handler)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register a callback receiving (exception, context) on unit errors."""
        self._error_callbacks.append(callback)

    def handlers(self, hook: str) -> list[Handler]:
        return list(self._handlers.get(hook, []))

    async def run(self, hook: str, value: Any) -> Any:
        """Thread value through every handler of hook.

        Args:
            hook: Hook name.
            value: Initial value.

        Returns:
            The value returned by the last handler. A handler returning None
            leaves the value unchanged.

        Raises:
            HookError: If a handler raises or returns an Exception.
        """
        for handler in self._handlers.get(hook, []):
            name = _handler_name(handler)
            try:
                result = handler(value)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                raise HookError(hook, name, str(e)) from e
            if isinstance(result, Exception):
                raise HookError(hook, name, str(result)) from result
            if result is not None:
                value = result
        return value

    async def notify_error(self, error: BaseException, context: Any) -> None:
        """Call every error callback. Callback failures are logged only."""
        for callback in self._error_callbacks:
            try:
                result = callback(error, context)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Error callback {_handler_name(callback)} failed: {e}")
