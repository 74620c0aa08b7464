"""
Reflection helpers for field injection and diagnostics.

Fields are the annotated attributes of a component class, walked in
declaration order (base classes first). Tags are the ``typing.Annotated``
metadata attached to each annotation.
"""
import inspect
import logging
import os
import typing
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from cachetools import LRUCache, cached

from .utils import maybe_await

logger = logging.getLogger(__name__)


class InvalidTargetError(TypeError):
    """Raised when a field walk is requested on something that is not a component instance."""


class FieldNotSettableError(AttributeError):
    """Raised when a field cannot be assigned on the target."""


@dataclass(frozen=True)
class FieldInfo:
    """Metadata of one annotated field."""
    name: str
    type: Any  # declared type with the Annotated wrapper removed
    tags: tuple = ()

    def tag(self, tag_type: type) -> Optional[Any]:
        """Return the first tag of the given type, if any."""
        for tag in self.tags:
            if isinstance(tag, tag_type):
                return tag
        return None


FieldVisitor = Callable[[object, FieldInfo, type], Union[None, Awaitable[None]]]


def clean_module_name(name: str) -> str:
    """
    Clean up module name for display, removing __init__ and __main__ parts.

    :param name: The raw module name (e.g., "__init__.dashboard").
    :return: Cleaned module name (e.g., "dashboard").
    """
    if not name:
        return "unknown"
    parts = [p for p in name.split(".") if p not in ("__init__", "__main__")]
    return ".".join(parts) if parts else name


def _short_module(module: Optional[str]) -> str:
    return clean_module_name(module or "").rsplit(".", 1)[-1]


def type_name(tp: Any) -> str:
    """
    Human readable name of a type.

    Classes are rendered as ``module.QualName`` using the last segment of the
    module path; builtins keep their bare name (``str``). Typing constructs
    fall back to their ``repr``.
    """
    if isinstance(tp, type):
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{_short_module(tp.__module__)}.{tp.__qualname__}"
    return repr(tp)


def type_name_of(value: Any) -> str:
    return type_name(type(value))


def format_file_name(path: str) -> str:
    """Format a source path as ``lastDir/file.py``."""
    if not path:
        return ""
    directory, file_name = os.path.split(path)
    return f"{os.path.basename(os.path.normpath(directory))}/{file_name}"


def is_function(value: Any) -> bool:
    return inspect.isfunction(value) or inspect.ismethod(value) or inspect.isbuiltin(value)


def function_name_and_location(fn: Callable) -> tuple[str, str]:
    """
    Qualified name and definition site of a function or bound method.

    :return: Tuple of ("module.Qual.name", "lastDir/file.py:line"). The location
        is empty when the function has no Python code object.
    """
    fn = inspect.unwrap(getattr(fn, "__func__", fn))
    module = getattr(fn, "__module__", None)
    qualname = getattr(fn, "__qualname__", getattr(fn, "__name__", repr(fn)))
    name = f"{_short_module(module)}.{qualname}" if module else qualname

    code = getattr(fn, "__code__", None)
    if code is None:
        return name, ""
    return name, f"{format_file_name(code.co_filename)}:{code.co_firstlineno}"


def caller_info(stack_level: int = 2) -> tuple[str, str, int]:
    """
    Capture the calling function and its location from the call stack.

    :param stack_level: Frames to skip; 1 is the direct caller of this function.
    :return: Tuple of (function name, "lastDir/file.py", line).
    """
    stack = inspect.stack(0)
    try:
        if stack_level >= len(stack):
            return "unknown", "unknown", 0
        frame = stack[stack_level]
        module = frame.frame.f_globals.get("__name__", "")
        qualname = getattr(frame.frame.f_code, "co_qualname", frame.function)
        return f"{_short_module(module)}.{qualname}", format_file_name(frame.filename), frame.lineno
    finally:
        del stack


def is_struct_instance(target: Any) -> bool:
    """Check that the target is an instance of a user-defined class."""
    if target is None or isinstance(target, type):
        return False
    return type(target).__module__ != "builtins"


@cached(cache=LRUCache(maxsize=512))
def fields_of(cls: type) -> tuple[FieldInfo, ...]:
    """
    Annotated fields of a class in declaration order, base classes first.

    ``ClassVar`` annotations are skipped.
    """
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as err:
        # Unresolvable forward references carry no usable tags.
        logger.debug("Could not resolve annotations of %s: %s", type_name(cls), err)
        hints = {}
        for klass in reversed(cls.__mro__):
            hints.update(inspect.get_annotations(klass))

    fields = []
    for name, hint in hints.items():
        if typing.get_origin(hint) is typing.ClassVar:
            continue
        tags: tuple = ()
        if typing.get_origin(hint) is typing.Annotated:
            tags = tuple(hint.__metadata__)
            hint = typing.get_args(hint)[0]
        fields.append(FieldInfo(name=name, type=hint, tags=tags))
    return tuple(fields)


async def iterate_fields(target: Any, *visitors: FieldVisitor) -> None:
    """
    Offer every field of the target to each visitor, in order.

    Visitors receive (target, field, owner type) and may be plain or coroutine
    functions. The first exception raised by a visitor aborts the walk.

    :raises InvalidTargetError: If the target is not a component instance.
    """
    if not is_struct_instance(target):
        shown = type_name(target) if isinstance(target, type) else type_name_of(target)
        raise InvalidTargetError(f"target must be a component instance, got '{shown}'")

    owner = type(target)
    for field in fields_of(owner):
        for visitor in visitors:
            await maybe_await(visitor(target, field, owner))


def set_field(target: Any, field: FieldInfo, value: Any) -> None:
    """
    Assign a value to a field of the target.

    :raises FieldNotSettableError: When the attribute cannot be written
        (frozen dataclasses, read-only properties, missing slots).
    """
    try:
        setattr(target, field.name, value)
    except AttributeError as err:
        raise FieldNotSettableError(f"field '{field.name}' is not settable") from err
