import asyncio
import logging
import signal
from datetime import timedelta
from typing import Any, Optional, Union

from . import config, depend
from .components.protocols import Closer, Introspector, Service, Setup, capabilities
from .errors import ComponentError, call_safe
from .inject import wire_fields
from .introspection import Caller, ComponentInfo, Report
from .readiness import HostedService, wait_for_readiness
from .reflection import caller_info, type_name_of
from .scope import Cancelled, Scope, as_seconds

logger = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _app_caller() -> Caller:
    """Location inside the app; the function is left blank for orchestrator driven accesses."""
    _, file, line = caller_info(2)
    return Caller("", file, line)


class App:
    """
    Host for setup steps and long running services.

    Setup steps run once, in order, each one seeing the scope returned by the
    previous ones. Services then run concurrently until the first of them
    fails or the scope is cancelled. Components implementing ``close`` are
    closed in reverse order once everything has stopped.

    Usage::

        app = App().initialize(Database()).host(HttpServer(), Worker())
        app.run()
    """

    def __init__(self) -> None:
        self._setups: list[Any] = []
        self._services: list[HostedService] = []
        self._introspector: Optional[Any] = None
        self._result: Optional[asyncio.Task] = None

    def initialize(self, *steps: Setup) -> "App":
        """Append setup steps."""
        for step in steps:
            if not isinstance(step, Setup):
                raise TypeError(f"'{type_name_of(step)}' has no setup method")
            self._setups.append(step)
        return self

    def host(self, *services: Service) -> "App":
        """Append services."""
        for service in services:
            if not isinstance(service, Service):
                raise TypeError(f"'{type_name_of(service)}' has no run method")
            logger.debug("Hosting %s (%s)", type_name_of(service), ", ".join(capabilities(service)))
            self._services.append(HostedService(service))
        return self

    def introspect(self, introspector: Introspector) -> "App":
        """Install the introspector receiving the report before services start."""
        if not isinstance(introspector, Introspector):
            raise TypeError(f"'{type_name_of(introspector)}' has no introspect method")
        self._introspector = introspector
        return self

    @property
    def setups(self) -> list[Any]:
        return list(self._setups)

    @property
    def services(self) -> list[Any]:
        return [hosted.service for hosted in self._services]

    # Execution

    async def run_with_scope(self, scope: Scope) -> None:
        """
        Run every setup step then every service under the given scope.

        :raises ComponentError: The first failure, wrapped with the component
            that produced it.
        """
        closers: list[Any] = []
        try:
            scope = await self._run_setups(scope, closers)
            await self._wire_services(scope, closers)
            await self._run_introspector(scope)
            await self._run_services(scope)
        except BaseException as err:
            await self._close(closers, err)
            raise
        await self._close(closers, None)

    def run(self, ready_timeout: Optional[Union[float, timedelta]] = None) -> None:
        """
        Run the app in a new event loop until it finishes or the process
        receives SIGINT or SIGTERM.

        :param ready_timeout: When given, log once every service reports ready,
            or warn if they do not within this time.
        """
        asyncio.run(self._run_until_signal(ready_timeout))

    def run_async(self, scope: Scope) -> asyncio.Task:
        """
        Start the app in a background task.

        Must be called from a running event loop. The task resolves to the
        final exception, or ``None`` when the app finished cleanly.
        """
        self._result = asyncio.create_task(self._run_capturing(scope))
        return self._result

    async def wait_for_readiness(
            self,
            scope: Scope,
            timeout: Union[float, timedelta]
    ) -> None:
        """
        Block until every service reports ready.

        If the app was started with ``run_async`` and ends first, its error is
        raised instead (or nothing, if it ended cleanly).

        :raises ComponentError: The last probe failure once ``timeout`` passes.
        """
        await wait_for_readiness(self._services, scope, timeout, self._result)

    async def _run_capturing(self, scope: Scope) -> Optional[BaseException]:
        try:
            await self.run_with_scope(scope)
        except Exception as err:
            return err
        return None

    async def _run_until_signal(self, ready_timeout: Optional[Union[float, timedelta]]) -> None:
        scope, cancel = Scope.background().with_cancel()
        loop = asyncio.get_running_loop()

        def on_signal(sig: signal.Signals) -> None:
            logger.info("Received %s, shutting down", sig.name)
            cancel()

        installed = []
        for sig in _SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, on_signal, sig)
                installed.append(sig)
            except (NotImplementedError, RuntimeError) as err:
                logger.debug("Cannot handle %s: %s", sig.name, err)
        try:
            if ready_timeout is None:
                await self.run_with_scope(scope)
            else:
                await self._run_watching_readiness(scope, ready_timeout)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            cancel()

    async def _run_watching_readiness(self, scope: Scope, timeout: Union[float, timedelta]) -> None:
        task = self.run_async(scope)
        try:
            await self.wait_for_readiness(scope, timeout)
        except Exception as err:
            if not task.done():
                logger.warning("Services not ready after %.1fs: %s", as_seconds(timeout), err)
        else:
            if not task.done():
                logger.info("All %d services ready", len(self._services))

        err = await task
        if err is not None:
            raise err

    # Phases

    async def _run_setups(self, scope: Scope, closers: list[Any]) -> Scope:
        logger.info("Running %d setup steps", len(self._setups))
        for step in self._setups:
            await wire_fields(scope, step, _app_caller())
            logger.debug("Setting up %s", type_name_of(step))
            replaced = await call_safe("Initialize", step, step.setup, scope)
            if isinstance(replaced, Scope):
                scope = replaced
            if isinstance(step, Closer):
                closers.append(step)
        return scope

    async def _wire_services(self, scope: Scope, closers: list[Any]) -> None:
        for hosted in self._services:
            await wire_fields(scope, hosted.service, _app_caller())
            if isinstance(hosted.service, Closer):
                closers.append(hosted.service)

    def report(self) -> Report:
        """Snapshot of configuration accesses, dependency events and components."""
        return Report(
            configs=tuple(config.accesses()),
            deps=tuple(depend.events()),
            services=tuple(ComponentInfo(type_name_of(s), type(s)) for s in self.services),
            setups=tuple(ComponentInfo(type_name_of(s), type(s)) for s in self._setups),
        )

    async def _run_introspector(self, scope: Scope) -> None:
        introspector = self._introspector
        if introspector is None:
            return
        await wire_fields(scope, introspector, _app_caller())
        logger.debug("Introspecting with %s", type_name_of(introspector))
        await call_safe(
            "Introspect",
            introspector,
            introspector.introspect,
            scope,
            self.report(),
            wrap_with=introspector.introspect,
        )

    async def _run_services(self, scope: Scope) -> None:
        if not self._services:
            return

        fan_out, cancel = scope.with_cancel()
        errors: list[ComponentError] = []

        async def run_one(hosted: HostedService) -> None:
            try:
                await hosted.run(fan_out)
            except ComponentError as err:
                logger.error("Service %s failed: %s", type_name_of(hosted.service), err)
                errors.append(err)
                cancel()
            except asyncio.CancelledError:
                # Cancellation of this task, not a CancelledError raised by the service.
                if asyncio.current_task().cancelling():
                    raise
                if fan_out.cancelled:
                    logger.debug("Service %s stopped on cancellation", type_name_of(hosted.service))
                    return
                err = ComponentError(Cancelled("service run was cancelled"), hosted.service.run)
                hosted.error = err
                logger.error("Service %s failed: %s", type_name_of(hosted.service), err)
                errors.append(err)
                cancel()
            else:
                logger.debug("Service %s finished", type_name_of(hosted.service))

        logger.info("Starting %d services", len(self._services))
        tasks = [asyncio.create_task(run_one(h)) for h in self._services]
        try:
            await asyncio.gather(*tasks)
        finally:
            cancel()
            # Closers must not run while any service is still draining.
            await asyncio.wait(tasks)

        if errors:
            raise errors[0]

    async def _close(self, closers: list[Any], primary: Optional[BaseException]) -> None:
        errors: list[ComponentError] = []
        for closer in reversed(closers):
            logger.debug("Closing %s", type_name_of(closer))
            try:
                await call_safe("Close", closer, closer.close)
            except ComponentError as err:
                errors.append(err)

        if not errors:
            return

        if primary is not None:
            for err in errors:
                logger.error("Error while closing after failure: %s", err, exc_info=err)
                primary.add_note(f"while closing: {err}")
            return

        if len(errors) == 1:
            raise errors[0]
        raise ExceptionGroup("One or more errors occurred during component cleanup.", errors)
