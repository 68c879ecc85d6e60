import asyncio
import inspect
import logging
from typing import Callable, Dict, List, Set

logger = logging.getLogger(__name__)


class EventEmitter:
    """Simple event emitter for upload store changes."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._pending: Set[asyncio.Task] = set()

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event."""
        if event_name not in self._listeners:
            self._listeners[event_name] = []
        if callback not in self._listeners[event_name]:
            self._listeners[event_name].append(callback)

    def off(self, event_name: str, callback: Callable):
        """Unsubscribe from an event."""
        if event_name in self._listeners:
            if callback in self._listeners[event_name]:
                self._listeners[event_name].remove(callback)

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

    async def emit(self, event_name: str, *args, **kwargs):
        """Emit an event to all listeners."""
        if event_name not in self._listeners:
            return

        for callback in self._listeners[event_name][:]:  # Copy list to avoid modification during iteration
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(*args, **kwargs)
                else:
                    callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_name}: {e}")

    def emit_nowait(self, event_name: str, *args, **kwargs):
        """
        Emit without blocking the caller.

        Synchronous listeners run immediately, in emission order; coroutine
        listeners are scheduled on the running loop.
        """
        if not self.has_listeners(event_name):
            return

        for callback in self._listeners[event_name][:]:
            if inspect.iscoroutinefunction(callback):
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    asyncio.run(self._call_async(event_name, callback, *args, **kwargs))
                    continue
                task = loop.create_task(self._call_async(event_name, callback, *args, **kwargs))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_name}: {e}")

    async def _call_async(self, event_name: str, callback: Callable, *args, **kwargs):
        try:
            await callback(*args, **kwargs)
        except Exception as e:
            logger.error(f"Error in event listener for {event_name}: {e}")

    async def drain(self):
        """Wait for scheduled coroutine listeners to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
