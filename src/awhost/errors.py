import asyncio
import logging
from typing import Any, Callable, Optional

from .reflection import function_name_and_location, is_function, type_name_of
from .utils import maybe_await

logger = logging.getLogger(__name__)


# Control-flow exceptions that must never be converted into component failures.
_PASSTHROUGH = (asyncio.CancelledError, KeyboardInterrupt, GeneratorExit)


class ComponentError(Exception):
    """
    An error associated with the component that produced it.

    When the component is a function or bound method, its qualified name and
    definition site are recorded; otherwise the component's type name is used.
    The underlying exception is kept in ``err``.
    """

    def __init__(self, err: BaseException, component: Any) -> None:
        self.err = err
        if is_function(component):
            self.component_name, self.file_line = function_name_and_location(component)
        else:
            self.component_name = type_name_of(component)
            self.file_line = ""
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.file_line:
            return f"error: {self.err}, component: {self.component_name}"
        return f"error: {self.err}, function: {self.component_name}, location: {self.file_line}"

    def unwrap(self) -> BaseException:
        """Return the innermost error, following nested ComponentErrors."""
        err = self.err
        while isinstance(err, ComponentError):
            err = err.err
        return err


class PanicError(Exception):
    """A component aborted with a non-``Exception`` BaseException."""

    def __init__(self, phase: str, value: BaseException) -> None:
        self.phase = phase
        self.value = value
        super().__init__(f"panic in {phase} func: {value}")


async def call_safe(
        phase: str,
        component: Any,
        method: Callable[..., Any],
        *args: Any,
        wrap_with: Optional[Any] = None
) -> Any:
    """
    Call a component method, converting every failure into a ComponentError.

    Exceptions are wrapped with ``wrap_with`` (defaults to the component).
    Panics, i.e. BaseExceptions outside the ``Exception`` hierarchy such as
    ``SystemExit``, are turned into ``PanicError`` and wrapped with the
    component. Cancellation and interrupts propagate untouched.

    :param phase: Phase name used in panic messages (Initialize, Run, ...).
    :param component: The component owning the method.
    :param method: The callable to invoke.
    :return: The (awaited) return value of the method.
    """
    try:
        return await maybe_await(method(*args))
    except _PASSTHROUGH:
        raise
    except Exception as err:
        raise ComponentError(err, wrap_with if wrap_with is not None else component) from err
    except BaseException as err:
        logger.error("Recovered panic in %s of %s: %r", phase, type_name_of(component), err)
        raise ComponentError(PanicError(phase, err), component) from err
