import logging
from typing import Any, Optional

from .config.values import config_field_visitor
from .depend.container import dependency_field_visitor
from .errors import ComponentError
from .introspection import Caller
from .reflection import caller_info, iterate_fields, type_name_of
from .scope import Scope

logger = logging.getLogger(__name__)


async def wire_fields(scope: Scope, target: Any, caller: Optional[Caller] = None) -> None:
    """
    Assign every tagged field of a component.

    Each field is offered to the dependency resolver first, then to the
    configuration resolver. Fields with neither tag are left untouched.

    :param scope: Scope passed to configuration providers.
    :param target: The component instance.
    :param caller: Code location recorded in the access logs; defaults to the
        direct caller.
    :raises ComponentError: Wrapping the first failure with the target's context.
    """
    if caller is None:
        caller = Caller(*caller_info(2))

    logger.debug("Wiring fields of %s", type_name_of(target))
    try:
        await iterate_fields(
            target,
            dependency_field_visitor(caller),
            config_field_visitor(scope, caller),
        )
    except Exception as err:
        raise ComponentError(err, target) from err
