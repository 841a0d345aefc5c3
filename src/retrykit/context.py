from __future__ import annotations

import threading
from typing import Optional

from .errors import Cancelled, DeadlineExceeded


class Context:
    """Cancellation handle threaded through every blocking wait.

    A context is cancelled at most once; the first error wins. Cancelling a
    context also cancels every child derived from it, and detaches it from
    its own parent. Use it as a `with` block (or call `release`) to free the
    deadline timer and the parent link once the work is done.
    """

    def __init__(self, parent: Optional["Context"] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[Cancelled] = None
        self._children: set[Context] = set()
        self._timer: Optional[threading.Timer] = None
        self._parent: Optional[Context] = None
        if parent is not None:
            parent._adopt(self)

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def _adopt(self, child: "Context") -> None:
        with self._lock:
            if self._error is None:
                self._children.add(child)
                child._parent = self
                return
            err = self._error
        child.cancel(err)

    def _forget(self, child: "Context") -> None:
        with self._lock:
            self._children.discard(child)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> Optional[Cancelled]:
        return self._error

    def cancel(self, error: Optional[Cancelled] = None) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error if error is not None else Cancelled()
            children, self._children = self._children, set()
            timer, self._timer = self._timer, None
            parent, self._parent = self._parent, None
            self._event.set()
        if timer is not None:
            timer.cancel()
        if parent is not None:
            parent._forget(self)
        for child in children:
            child.cancel(self._error)

    def release(self) -> None:
        """Cancel this context and its children, stop its timer, detach from the parent."""
        self.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or `timeout` seconds elapse.

        Returns True if the context was cancelled.
        """
        return self._event.wait(timeout)

    def _arm_deadline(self, seconds: float) -> None:
        timer = threading.Timer(seconds, self.cancel, args=(DeadlineExceeded(),))
        timer.daemon = True
        with self._lock:
            if self._error is not None:
                return
            self._timer = timer
        timer.start()


def background() -> Context:
    """A root context that is never cancelled unless asked to."""
    return Context()


def with_cancel(parent: Context) -> Context:
    return Context(parent)


def with_timeout(parent: Context, seconds: float) -> Context:
    if seconds < 0:
        raise ValueError("timeout must be >= 0")
    ctx = Context(parent)
    if seconds == 0:
        ctx.cancel(DeadlineExceeded())
    else:
        ctx._arm_deadline(seconds)
    return ctx
