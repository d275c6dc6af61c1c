"""
Completion relays and per-call handles.

Every service in cinebot has one core function that returns a ``Result``.
The callback form runs that core on a thread pool through ``dispatch`` and
hands the ``Result`` to a completion handler exactly once. The direct and
``async`` forms pass a relay as that handler and wait on it:

    >>> relay: CompletionRelay[str] = CompletionRelay()
    >>> transcriber.submit_audio("talk.m4a", on_complete=relay)
    >>> text = relay.wait()
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, cast

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one call: a value or an error, never both."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return cast(T, self.value)


CompletionHandler = Callable[[Result[T]], None]


class CallStatus(str, Enum):
    """Lifecycle of a single submitted call."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CallHandle(Generic[T]):
    """Status and outcome of one in-flight call.

    Each submitted call gets its own handle, so concurrent calls never share
    a "processing" flag.
    """

    def __init__(self, future: Future) -> None:
        self._future = future

    @property
    def status(self) -> CallStatus:
        if not self._future.done():
            return CallStatus.RUNNING if self._future.running() else CallStatus.PENDING
        return CallStatus.SUCCEEDED if self._future.result().is_success else CallStatus.FAILED

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> Result[T]:
        """Block until the call finishes and return its ``Result``."""
        return cast(Result[T], self._future.result(timeout))


def dispatch(
    executor: Executor,
    work: Callable[..., Result[T]],
    on_complete: CompletionHandler[T],
    *args: Any,
) -> CallHandle[T]:
    """Run ``work(*args)`` on ``executor`` and deliver its result once.

    Exceptions escaping ``work`` become a failed ``Result`` so the handler is
    always called. Exceptions raised by the handler are logged.
    """

    def run() -> Result[T]:
        try:
            result = work(*args)
        except Exception as e:
            logger.exception(f"Unexpected failure in {getattr(work, '__name__', work)}")
            result = Result.failure(e)
        try:
            on_complete(result)
        except Exception:
            logger.exception("Completion handler raised")
        return result

    return CallHandle(executor.submit(run))


class CompletionRelay(Generic[T]):
    """Turns a one-shot completion callback into a blocking ``wait()``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._delivered = threading.Event()
        self._result: Optional[Result[T]] = None
        self._abandoned = False

    def __call__(self, result: Result[T]) -> None:
        with self._lock:
            if self._result is not None or self._abandoned:
                logger.debug("Dropping completion: relay already resolved or abandoned")
                return
            self._result = result
        self._delivered.set()

    @property
    def delivered(self) -> bool:
        return self._delivered.is_set()

    def wait(self, timeout: Optional[float] = None) -> T:
        """Block until the result arrives; return it or raise its error.

        Raises:
            TimeoutError: If nothing was delivered within ``timeout`` seconds.
                The relay is abandoned and a late delivery is ignored.
        """
        self._delivered.wait(timeout)
        with self._lock:
            if self._result is None:
                self._abandoned = True
                raise TimeoutError(f"No completion delivered within {timeout}s")
            result = self._result
        return result.unwrap()


class AsyncCompletionRelay(Generic[T]):
    """``asyncio`` counterpart of ``CompletionRelay``.

    Must be created inside the event loop that awaits it. Deliveries may
    come from any thread; they are handed to the loop with
    ``call_soon_threadsafe``. If the awaiting task is cancelled, the
    pending future is cancelled with it and a later delivery is a no-op.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()

    def __call__(self, result: Result[T]) -> None:
        try:
            self._loop.call_soon_threadsafe(self._resolve, result)
        except RuntimeError:
            logger.debug("Dropping completion: event loop is closed")

    def _resolve(self, result: Result[T]) -> None:
        if self._future.done():
            logger.debug("Dropping completion: awaiter already resolved or cancelled")
            return
        self._future.set_result(result)

    async def wait(self) -> T:
        result = cast(Result[T], await self._future)
        return result.unwrap()
