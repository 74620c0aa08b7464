"""
Readiness tracking for hosted services.

Every hosted service is paired with a probe. Services implementing
``is_ready`` are asked directly; the others report ready once their ``run``
has been entered. A service whose ``run`` already returned is never probed
again: it counts as ready when it returned cleanly and as failing otherwise.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Optional, Union

from .components.protocols import ReadinessProbe
from .errors import ComponentError, call_safe
from .scope import Cancelled, DeadlineExceeded, Scope
from .utils import maybe_await

logger = logging.getLogger(__name__)

READY_POLL_INTERVAL = 0.05


class NotReadyError(RuntimeError):
    """A service without its own probe has not started running yet."""


class HostedService:
    """A service together with its run state."""

    def __init__(self, service: Any) -> None:
        self.service = service
        self.started = False
        self.finished = False
        self.error: Optional[BaseException] = None

    @property
    def has_probe(self) -> bool:
        return isinstance(self.service, ReadinessProbe)

    async def run(self, scope: Scope) -> None:
        """
        Run the service, recording entry and exit.

        :raises ComponentError: Wrapping any failure or panic of the service.
        """
        self.started = True
        try:
            await call_safe("Run", self.service, self.service.run, scope, wrap_with=self.service.run)
        except ComponentError as err:
            self.error = err
            raise
        finally:
            self.finished = True

    async def is_ready(self, scope: Scope) -> None:
        """Raise when the service is not ready."""
        if self.finished:
            if self.error is not None:
                raise self.error
            return
        if self.has_probe:
            await maybe_await(self.service.is_ready(scope))
        elif not self.started:
            raise NotReadyError("not ready")


async def _next_tick(poll: Scope, result: Optional[asyncio.Future]) -> None:
    waiters = [
        asyncio.ensure_future(asyncio.sleep(READY_POLL_INTERVAL)),
        asyncio.ensure_future(poll.wait()),
    ]
    watched = list(waiters)
    if result is not None:
        watched.append(result)
    try:
        await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()


def _app_result(result: asyncio.Future) -> None:
    if result.cancelled():
        raise Cancelled("app task cancelled")
    err = result.result()
    if err is not None:
        raise err


async def wait_for_readiness(
        services: list[HostedService],
        scope: Scope,
        timeout: Union[float, timedelta],
        result: Optional[asyncio.Future] = None
) -> None:
    """
    Poll the probes of every service until all report ready.

    :param services: Services in declared order.
    :param scope: Caller scope; cancelling it aborts the wait.
    :param timeout: Seconds or timedelta to wait at most.
    :param result: Final outcome of an app started in the background. When it
        completes first, its error (or success) is returned.
    :raises ComponentError: The last failing probe error, wrapped with its
        service, once the deadline passes.
    :raises ScopeError: On cancellation, or on deadline without any probe failure.
    """
    if not services:
        return

    poll, cancel = scope.with_timeout(timeout)
    last_failed: Optional[HostedService] = None
    last_error: Optional[Exception] = None
    try:
        while True:
            if result is not None and result.done():
                logger.debug("App finished while waiting for readiness")
                _app_result(result)
                return

            ready = True
            for hosted in services:
                try:
                    await hosted.is_ready(poll)
                except Exception as err:
                    last_failed, last_error = hosted, err
                    ready = False
                    break
            if ready:
                logger.debug("All %d services ready", len(services))
                return

            await _next_tick(poll, result)

            if result is not None and result.done():
                continue
            if poll.cancelled:
                if isinstance(poll.error, DeadlineExceeded) and last_error is not None:
                    if isinstance(last_error, ComponentError):
                        raise last_error
                    raise ComponentError(last_error, last_failed.service) from last_error
                raise poll.error
    finally:
        cancel()
