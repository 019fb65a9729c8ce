"""Abortable signals threaded through adapter network requests.

An :class:`AbortSignal` fires at most once. Listeners registered before it
fires are called with the abort reason; listeners registered afterwards are
called immediately. Two context managers build derived signals:

- :func:`timeout_signal` fires after a delay and cancels its timer on exit.
- :func:`any_signal` fires when the first of several signals fires and
  detaches from its parents on exit, leaving them untouched.

Examples:
    >>> signal = AbortSignal()
    >>> with any_signal([signal]) as combined:
    ...     signal.abort()
    ...     combined.aborted
    True
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import threading
from typing import Awaitable, Callable, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")

Listener = Callable[[BaseException], None]


class AbortError(RuntimeError):
    """Default abort reason when none is supplied."""


def _noop() -> None:
    return None


class AbortSignal:
    """A one-shot, thread-safe abort flag with listeners."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._aborted = False
        self._reason: Optional[BaseException] = None
        self._listeners: List[Listener] = []

    @property
    def aborted(self) -> bool:
        """Whether the signal has fired."""
        return self._aborted

    @property
    def reason(self) -> Optional[BaseException]:
        """Exception describing why the signal fired, if it has."""
        return self._reason

    def abort(self, reason: Optional[BaseException] = None) -> None:
        """Fire the signal. Later calls are ignored."""
        with self._lock:
            if self._aborted:
                return
            self._aborted = True
            self._reason = reason if reason is not None else AbortError("operation aborted")
            listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(self._reason)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        with self._lock:
            if not self._aborted:
                self._listeners.append(listener)

                def remove() -> None:
                    with self._lock:
                        if listener in self._listeners:
                            self._listeners.remove(listener)

                return remove
            reason = self._reason
        listener(reason)  # type: ignore[arg-type]
        return _noop

    def throw_if_aborted(self) -> None:
        """Raise the abort reason if the signal has fired."""
        if self._aborted and self._reason is not None:
            raise self._reason

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"AbortSignal(aborted={self._aborted}, reason={self._reason!r})"


@contextlib.contextmanager
def timeout_signal(timeout_ms: float) -> Iterator[AbortSignal]:
    """Yield a signal that aborts with ``TimeoutError`` after ``timeout_ms``.

    Must be entered from a running event loop. The timer is cancelled when the
    context exits.
    """
    loop = asyncio.get_running_loop()
    signal = AbortSignal()
    handle = loop.call_later(
        max(float(timeout_ms), 0.0) / 1000.0,
        signal.abort,
        TimeoutError(f"request timed out after {timeout_ms}ms"),
    )
    try:
        yield signal
    finally:
        handle.cancel()


@contextlib.contextmanager
def any_signal(signals: Iterable[AbortSignal]) -> Iterator[AbortSignal]:
    """Yield a signal that fires with the reason of the first parent to fire."""
    combined = AbortSignal()
    removers = [signal.add_listener(combined.abort) for signal in signals]
    try:
        yield combined
    finally:
        for remove in removers:
            remove()


async def race(awaitable: Awaitable[T], signal: Optional[AbortSignal]) -> T:
    """Await ``awaitable`` unless ``signal`` fires first.

    When the signal wins, the pending work is cancelled and the abort reason is
    raised.
    """
    if signal is None:
        return await awaitable

    if signal.aborted:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        signal.throw_if_aborted()
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(awaitable)
    fired: asyncio.Future[BaseException] = loop.create_future()

    def _set(reason: BaseException) -> None:
        if not fired.done():
            fired.set_result(reason)

    remove = signal.add_listener(lambda reason: loop.call_soon_threadsafe(_set, reason))
    try:
        done, _ = await asyncio.wait({task, fired}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return task.result()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise fired.result()
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        remove()
        if not fired.done():
            fired.cancel()


__all__ = ["AbortError", "AbortSignal", "any_signal", "race", "timeout_signal"]
