import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from dependency_injector import providers

from ..introspection import Caller, DependencyEvent, DependencyEventKind
from ..reflection import (
    FieldInfo, FieldVisitor, caller_info, iterate_fields, set_field, type_name, type_name_of
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class AlreadyRegisteredError(ValueError):
    """The dependency slot is already occupied."""


class DependencyNotRegisteredError(LookupError):
    """Base class for failed resolutions."""


class TypeNotRegisteredError(DependencyNotRegisteredError):
    """No slot of the requested type exists."""


class NameNotRegisteredError(DependencyNotRegisteredError):
    """The type is known but the requested name is not."""


@dataclass(frozen=True)
class Resolve:
    """Field tag requesting the dependency of the field's type with the given name."""
    name: str = ""


class DependencyContainer:
    """
    Values keyed by (type, name), with a log of registrations and resolutions.

    Stored values are shared by reference; the container never copies or
    disposes them.
    """

    def __init__(self) -> None:
        self._slots: dict[Any, dict[str, providers.Object]] = {}
        self._lock = threading.RLock()
        self._events: list[DependencyEvent] = []
        self._order = 0

    def _log_event(
            self,
            kind: DependencyEventKind,
            type_: Any,
            name: str,
            value: Any,
            caller: Caller,
            component: str = ""
    ) -> None:
        with self._lock:
            self._order += 1
            self._events.append(DependencyEvent(
                kind=kind,
                type=type_name(type_),
                name=name,
                impl=type_name_of(value),
                caller=caller,
                component=component,
                order=self._order,
            ))

    def register(
            self,
            type_: type[_T],
            value: _T,
            name: str = "",
            *,
            once: bool = False,
            caller: Optional[Caller] = None
    ) -> None:
        """
        Store a value in the (type, name) slot.

        :param once: Refuse to overwrite an occupied slot.
        :raises AlreadyRegisteredError: When ``once`` is set and the slot is occupied.
        :raises TypeError: When the value is not an instance of ``type_``.
        """
        _check_instance(type_, value)
        with self._lock:
            by_name = self._slots.setdefault(type_, {})
            if once and name in by_name:
                if name == "":
                    raise AlreadyRegisteredError(
                        f"dependency already registered for type {type_name(type_)}"
                    )
                raise AlreadyRegisteredError(
                    f"dependency already registered for type {type_name(type_)} and name '{name}'"
                )
            by_name[name] = providers.Object(value)
            self._log_event(DependencyEventKind.REGISTERED, type_, name, value, caller or Caller())
        logger.debug("Registered dependency %s%s (%s)",
                     type_name(type_), f" '{name}'" if name else "", type_name_of(value))

    def lookup(self, type_: type[_T], name: str = "") -> _T:
        """
        Return the stored value without recording an event.

        :raises TypeNotRegisteredError: No slot of this type exists.
        :raises NameNotRegisteredError: The type exists but not under this name.
        """
        with self._lock:
            by_name = self._slots.get(type_)
            if by_name is None:
                raise TypeNotRegisteredError(
                    f"the dependency type '{type_name(type_)}' was not registered"
                )
            provider = by_name.get(name)
            if provider is None:
                raise NameNotRegisteredError(
                    f"the dependency '{name}' of type '{type_name(type_)}' was not registered"
                )
            return provider()

    def resolve(
            self,
            type_: type[_T],
            name: str = "",
            *,
            caller: Optional[Caller] = None,
            component: str = ""
    ) -> _T:
        value = self.lookup(type_, name)
        self._log_event(DependencyEventKind.RESOLVED, type_, name, value, caller or Caller(), component)
        return value

    def events(self) -> list[DependencyEvent]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._slots.clear()
            self._events.clear()
            self._order = 0
        logger.debug("Dependency container cleared")


def _check_instance(type_: Any, value: Any) -> None:
    if value is None or not isinstance(type_, type):
        return
    try:
        matches = isinstance(value, type_)
    except TypeError:
        # Protocols without runtime_checkable cannot be checked.
        return
    if not matches:
        raise TypeError(
            f"cannot register value of type '{type_name_of(value)}' as '{type_name(type_)}'"
        )


_CONTAINER = DependencyContainer()


def register(type_: type[_T], value: _T) -> None:
    """Store ``value`` in the unnamed slot of ``type_``, replacing any previous value."""
    _CONTAINER.register(type_, value, caller=Caller(*caller_info(2)))


def register_named(type_: type[_T], value: _T, name: str) -> None:
    """Store ``value`` in the named slot of ``type_``, replacing any previous value."""
    _CONTAINER.register(type_, value, name, caller=Caller(*caller_info(2)))


def register_once(type_: type[_T], value: _T) -> None:
    """
    :raises AlreadyRegisteredError: If the unnamed slot of ``type_`` is occupied.
    """
    _CONTAINER.register(type_, value, once=True, caller=Caller(*caller_info(2)))


def register_named_once(type_: type[_T], value: _T, name: str) -> None:
    """
    :raises AlreadyRegisteredError: If the named slot of ``type_`` is occupied.
    """
    _CONTAINER.register(type_, value, name, once=True, caller=Caller(*caller_info(2)))


def resolve(type_: type[_T]) -> _T:
    return _CONTAINER.resolve(type_, caller=Caller(*caller_info(2)))


def resolve_named(type_: type[_T], name: str) -> _T:
    return _CONTAINER.resolve(type_, name, caller=Caller(*caller_info(2)))


def dependency_field_visitor(caller: Optional[Caller] = None) -> FieldVisitor:
    """Build the field visitor assigning ``Resolve`` tagged fields."""

    def visit(target: Any, field: FieldInfo, owner: type) -> None:
        tag = field.tag(Resolve)
        if tag is None:
            return
        value = _CONTAINER.lookup(field.type, tag.name)
        set_field(target, field, value)
        _CONTAINER._log_event(
            DependencyEventKind.RESOLVED,
            field.type,
            tag.name,
            value,
            caller or Caller(),
            type_name(owner),
        )

    return visit


async def resolve_struct(target: Any) -> None:
    """Assign every ``Resolve`` tagged field of the target."""
    await iterate_fields(target, dependency_field_visitor(Caller(*caller_info(2))))


def events() -> list[DependencyEvent]:
    """Copy of every registration and resolution event, in order."""
    return _CONTAINER.events()


def clear() -> None:
    """Drop every slot and the event log."""
    _CONTAINER.clear()
