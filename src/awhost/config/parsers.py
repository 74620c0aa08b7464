"""
Type keyed registry of string parsers used by typed configuration lookups
and configuration field injection.
"""
import logging
import re
import threading
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, TypeVar

from ..reflection import type_name

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

ParseFunc = Callable[[str], _T]


class NoParserForTypeError(LookupError):
    """Raised when no parser is registered for a requested type."""


_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_INT_RE = re.compile(r"[+-]?[0-9]+")

# Microseconds per unit.
_DURATION_UNITS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),  # U+00B5 micro sign
    "μs": Decimal(1),  # U+03BC greek mu
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}
_DURATION_PART = r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([+-]?)((?:{_DURATION_PART})+)")
_DURATION_PART_RE = re.compile(_DURATION_PART)


def parse_str(value: str) -> str:
    return value


def parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value '{value}'")


def parse_int(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid integer value '{value}'")
    return int(value)


def parse_float(value: str) -> float:
    # float() tolerates surrounding blanks and digit separators; configuration values may not.
    if value != value.strip() or "_" in value:
        raise ValueError(f"invalid float value '{value}'")
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"invalid float value '{value}'") from None


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as ``300ms``, ``-1.5h`` or ``2h45m``.

    Valid units are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m``, ``h``.
    A bare ``0`` is accepted. Sub-microsecond precision is truncated.
    """
    if value in ("0", "+0", "-0"):
        return timedelta(0)

    match = _DURATION_RE.fullmatch(value)
    if match is None:
        if re.fullmatch(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)", value):
            raise ValueError(f"missing unit in duration '{value}'")
        raise ValueError(f"invalid duration '{value}'")

    sign, body = match.group(1), match.group(2)
    total = Decimal(0)
    try:
        for number, unit in _DURATION_PART_RE.findall(body):
            total += Decimal(number) * _DURATION_UNITS[unit]
    except InvalidOperation:
        raise ValueError(f"invalid duration '{value}'") from None

    if sign == "-":
        total = -total
    return timedelta(microseconds=int(total))


_BUILTIN_PARSERS: dict[Any, ParseFunc] = {
    str: parse_str,
    bool: parse_bool,
    int: parse_int,
    float: parse_float,
    timedelta: parse_duration,
}

_lock = threading.Lock()
_PARSERS: dict[Any, ParseFunc] = dict(_BUILTIN_PARSERS)


def register_parser(
        type_: type[_T],
        parser: Optional[ParseFunc[_T]] = None
):
    """
    Register a parser for a type, replacing any previous one.

    Can be used as a direct call or as a decorator::

        @register_parser(Path)
        def parse_path(value: str) -> Path:
            return Path(value)

    :param type_: The target type.
    :param parser: Function converting a string into ``type_``.
    """
    def _register(fn: ParseFunc[_T]) -> ParseFunc[_T]:
        with _lock:
            _PARSERS[type_] = fn
        logger.debug("Registered parser for type '%s'", type_name(type_))
        return fn

    if parser is None:
        return _register
    return _register(parser)


def parser_for(type_: Any) -> ParseFunc:
    """
    :raises NoParserForTypeError: If no parser is registered for the type.
    """
    with _lock:
        parser = _PARSERS.get(type_)
    if parser is None:
        raise NoParserForTypeError(f"parser for type '{type_name(type_)}' does not exist")
    return parser


def parse(type_: type[_T], value: str) -> _T:
    return parser_for(type_)(value)


def reset_parsers() -> None:
    """Restore the built-in parsers, dropping custom registrations."""
    logger.debug("Resetting parser registry")
    with _lock:
        _PARSERS.clear()
        _PARSERS.update(_BUILTIN_PARSERS)
