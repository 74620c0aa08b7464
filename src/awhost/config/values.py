import logging
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from .parsers import parser_for
from .registry import inspector
from ..introspection import Caller
from ..reflection import FieldInfo, FieldVisitor, caller_info, iterate_fields, set_field, type_name
from ..scope import Scope

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class ConfigError(Exception):
    """A configuration field could not be loaded or parsed."""


@dataclass(frozen=True)
class Config:
    """
    Field tag requesting a configuration value.

    ``default=None`` means the key is required; any string, including the
    empty string, is used when the lookup fails.
    """
    key: str
    default: Optional[str] = None


async def get(type_: type[_T], scope: Scope, key: str) -> _T:
    """
    Retrieve a configuration value and parse it as ``type_``.

    :raises NoParserForTypeError: If no parser is registered for the type.
    :raises LookupError: If the provider has no value for the key.
    :raises ValueError: If the value cannot be parsed.
    """
    caller = Caller(*caller_info(2))
    parser = parser_for(type_)
    value = await inspector().get(scope, key, caller=caller)
    return parser(value)


async def get_with_default(type_: type[_T], scope: Scope, key: str, default: _T) -> _T:
    """Like ``get`` but returns ``default`` on any failure."""
    caller = Caller(*caller_info(2))
    try:
        parser = parser_for(type_)
        value = await inspector().get(scope, key, has_default=True, caller=caller)
        if value is None:
            return default
        return parser(value)
    except Exception as err:
        logger.debug("Falling back to default for config key '%s': %s", key, err)
        return default


def config_field_visitor(scope: Scope, caller: Optional[Caller] = None) -> FieldVisitor:
    """Build the field visitor loading ``Config`` tagged fields."""

    async def visit(target: Any, field: FieldInfo, owner: type) -> None:
        tag = field.tag(Config)
        if tag is None:
            return

        parser = parser_for(field.type)
        has_default = tag.default is not None
        try:
            value = await inspector().get(
                scope,
                tag.key,
                has_default=has_default,
                caller=caller,
                component=type_name(owner),
            )
        except Exception as err:
            raise ConfigError(f"error getting value for field '{field.name}': {err}") from err

        if value is None:
            value = tag.default

        try:
            parsed = parser(value)
        except Exception as err:
            raise ConfigError(f"error parsing value for field '{field.name}': {err}") from err

        set_field(target, field, parsed)
        logger.debug("Loaded config '%s' into %s.%s", tag.key, type_name(owner), field.name)

    return visit


async def load_struct(scope: Scope, target: Any) -> None:
    """Load every ``Config`` tagged field of the target."""
    caller = Caller(*caller_info(2))
    await iterate_fields(target, config_field_visitor(scope, caller))
