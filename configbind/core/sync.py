"""Blocking entry points over the async API.

Coroutines are submitted to one private event loop running in a daemon
thread, so async clients (redis.asyncio) stay bound to a single loop across
blocking calls. Do not call the blocking wrappers from inside a running event
loop: they refuse with RuntimeError instead of stalling that loop.
"""

import asyncio
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


class SyncRunner:
    """Runs coroutines to completion on a background event loop."""

    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Block the calling thread until coro completes.

        Raises:
            RuntimeError: If called from a thread with a running event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            coro.close()
            raise RuntimeError(
                "Blocking configbind call made from a running event loop; "
                "use get_async()/save_async() instead."
            )

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        return future.result()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or self._loop.is_closed():
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=_serve_forever,
                    args=(loop,),
                    name="configbind-sync",
                    daemon=True,
                )
                thread.start()
                self._loop = loop
                self._thread = thread
            return self._loop

    def shutdown(self) -> None:
        """Stop the background loop. A later run() starts a fresh one."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None

        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=5.0)
        loop.close()


def _serve_forever(loop: asyncio.AbstractEventLoop) -> None:
    asyncio.set_event_loop(loop)
    loop.run_forever()


_runner = SyncRunner()


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run coro on the shared background loop and return its result."""
    return _runner.run(coro)


def shutdown_sync_runner() -> None:
    """Stop the shared background loop."""
    _runner.shutdown()
