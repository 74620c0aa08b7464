from .container import (
    AlreadyRegisteredError,
    DependencyContainer,
    DependencyNotRegisteredError,
    NameNotRegisteredError,
    Resolve,
    TypeNotRegisteredError,
    clear,
    dependency_field_visitor,
    events,
    register,
    register_named,
    register_named_once,
    register_once,
    resolve,
    resolve_named,
    resolve_struct,
)

__all__ = [
    # Tags
    "Resolve",

    # Errors
    "AlreadyRegisteredError",
    "DependencyNotRegisteredError",
    "NameNotRegisteredError",
    "TypeNotRegisteredError",

    # Container
    "DependencyContainer",
    "clear",
    "events",
    "dependency_field_visitor",

    # Registration
    "register",
    "register_named",
    "register_once",
    "register_named_once",

    # Resolution
    "resolve",
    "resolve_named",
    "resolve_struct",
]
