"""
Cancellation scopes.

A scope carries a cancellation signal, an optional deadline and a chain of
keyed values. Scopes are immutable: every ``with_*`` call derives a child
scope. Cancelling a scope cancels every scope derived from it.
"""
import asyncio
import logging
import weakref
from datetime import timedelta
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

CancelFunc = Callable[[], None]

_MISSING = object()


class ScopeError(Exception):
    """Base class for the reasons a scope is done."""


class Cancelled(ScopeError):
    def __init__(self, message: str = "scope cancelled") -> None:
        super().__init__(message)


class DeadlineExceeded(ScopeError):
    def __init__(self, message: str = "scope deadline exceeded") -> None:
        super().__init__(message)


def as_seconds(value: Union[float, int, timedelta]) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class Scope:
    """Immutable cancellation and value-propagation carrier."""

    def __init__(
            self,
            parent: Optional["Scope"] = None,
            key: Any = _MISSING,
            value: Any = None,
            deadline: Optional[float] = None
    ) -> None:
        self._parent = parent
        self._key = key
        self._value = value
        self._deadline = deadline
        self._error: Optional[ScopeError] = None
        self._done = asyncio.Event()
        self._children: "weakref.WeakSet[Scope]" = weakref.WeakSet()
        self._timer: Optional[asyncio.TimerHandle] = None

        if parent is not None:
            if parent._error is not None:
                self._cancel(parent._error)
            else:
                parent._children.add(self)

    @classmethod
    def background(cls) -> "Scope":
        """Root scope: never cancelled, no deadline, no values."""
        return cls()

    # Values

    def with_value(self, key: Any, value: Any) -> "Scope":
        return Scope(self, key, value, self._deadline)

    def get(self, key: Any, default: Any = None) -> Any:
        scope: Optional[Scope] = self
        while scope is not None:
            if scope._key is not _MISSING and scope._key == key:
                return scope._value
            scope = scope._parent
        return default

    def __getitem__(self, key: Any) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: Any) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    # Cancellation

    def with_cancel(self) -> tuple["Scope", CancelFunc]:
        """Derive a child scope together with the function that cancels it."""
        child = Scope(self, deadline=self._deadline)
        return child, lambda: child._cancel(Cancelled())

    def with_timeout(self, timeout: Union[float, timedelta]) -> tuple["Scope", CancelFunc]:
        """
        Derive a child scope that is cancelled with DeadlineExceeded after ``timeout``.

        Must be called from a running event loop. An earlier parent deadline wins.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + as_seconds(timeout)
        if self._deadline is not None and self._deadline < deadline:
            deadline = self._deadline

        child = Scope(self, deadline=deadline)
        if child._error is None:
            child._timer = loop.call_at(deadline, child._cancel, DeadlineExceeded())

        def cancel() -> None:
            child._cancel(Cancelled())

        return child, cancel

    def _cancel(self, error: ScopeError) -> None:
        if self._error is not None:
            return
        self._error = error
        self._done.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for child in list(self._children):
            child._cancel(error)
        self._children.clear()

    @property
    def deadline(self) -> Optional[float]:
        """Absolute deadline in event loop time, if any."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> Optional[ScopeError]:
        """Why the scope is done: Cancelled, DeadlineExceeded or None while active."""
        return self._error

    async def wait(self) -> ScopeError:
        """Block until the scope is cancelled and return the reason."""
        await self._done.wait()
        assert self._error is not None
        return self._error

    def raise_if_cancelled(self) -> None:
        if self._error is not None:
            raise self._error

    def __repr__(self) -> str:
        state = type(self._error).__name__ if self._error is not None else "active"
        return f"<Scope {state} deadline={self._deadline}>"
