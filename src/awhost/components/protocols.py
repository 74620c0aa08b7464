from typing import Any, Awaitable, Optional, Protocol, Union, runtime_checkable

from ..introspection import Report
from ..scope import Scope


@runtime_checkable
class Setup(Protocol):
    """
    Protocol for setup steps.

    ``setup`` runs once, in declared order, before any service starts. It
    may return a derived scope that replaces the current one for every
    later step and service. Plain and coroutine functions are accepted.
    """

    def setup(self, scope: Scope) -> Union[Optional[Scope], Awaitable[Optional[Scope]]]:
        ...


@runtime_checkable
class Service(Protocol):
    """
    Protocol for hosted services.

    ``run`` is expected to block until its scope is cancelled. Raising ends
    the whole app.
    """

    def run(self, scope: Scope) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class ReadinessProbe(Protocol):
    """Services may report readiness; raising means not ready yet."""

    def is_ready(self, scope: Scope) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class Closer(Protocol):
    """Components holding resources; ``close`` runs once the app finishes."""

    def close(self) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class Introspector(Protocol):
    """Receives the introspection report after setup, before services start."""

    def introspect(self, scope: Scope, report: Report) -> Union[None, Awaitable[None]]:
        ...


def capabilities(component: Any) -> list[str]:
    """Names of the protocols the component satisfies, for diagnostics."""
    return [
        proto.__name__
        for proto in (Setup, Service, ReadinessProbe, Closer, Introspector)
        if isinstance(component, proto)
    ]
