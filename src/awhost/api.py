"""
Public API of awhost.

Import only from this module (or the package root) for stable API access.
"""

from .app import App
from .components.protocols import (
    Closer,
    Introspector,
    ReadinessProbe,
    Service,
    Setup,
)
from .config.parsers import NoParserForTypeError, register_parser, reset_parsers
from .config.providers import (
    CompositeProvider,
    EnvProvider,
    FileProvider,
    MappingProvider,
    NotSetError,
    Provider,
    ProviderChainError,
)
from .config.registry import accesses, reset_provider, set_provider
from .config.settings import HostSettings
from .config.setup import setup_logging
from .config.values import Config, ConfigError, get, get_with_default, load_struct
from .depend.container import (
    AlreadyRegisteredError,
    DependencyNotRegisteredError,
    NameNotRegisteredError,
    Resolve,
    TypeNotRegisteredError,
    register,
    register_named,
    register_named_once,
    register_once,
    resolve,
    resolve_named,
    resolve_struct,
)
from .errors import ComponentError, PanicError
from .inject import wire_fields
from .introspection import (
    Caller,
    ComponentInfo,
    ConfigAccess,
    DependencyEvent,
    DependencyEventKind,
    LogIntrospector,
    Report,
)
from .loader import load_app
from .readiness import NotReadyError
from .reflection import FieldNotSettableError, InvalidTargetError
from .scope import Cancelled, DeadlineExceeded, Scope, ScopeError

__all__ = [
    # App
    "App",
    "load_app",
    "HostSettings",
    "setup_logging",
    # Scope
    "Scope",
    "ScopeError",
    "Cancelled",
    "DeadlineExceeded",
    # Components
    "Setup",
    "Service",
    "ReadinessProbe",
    "Closer",
    "Introspector",
    # Errors
    "ComponentError",
    "PanicError",
    "NotReadyError",
    "InvalidTargetError",
    "FieldNotSettableError",
    # Config
    "Config",
    "ConfigError",
    "Provider",
    "EnvProvider",
    "MappingProvider",
    "FileProvider",
    "CompositeProvider",
    "NotSetError",
    "ProviderChainError",
    "NoParserForTypeError",
    "register_parser",
    "reset_parsers",
    "set_provider",
    "reset_provider",
    "accesses",
    "get",
    "get_with_default",
    "load_struct",
    # Dependencies
    "Resolve",
    "AlreadyRegisteredError",
    "DependencyNotRegisteredError",
    "TypeNotRegisteredError",
    "NameNotRegisteredError",
    "register",
    "register_named",
    "register_once",
    "register_named_once",
    "resolve",
    "resolve_named",
    "resolve_struct",
    "wire_fields",
    # Introspection
    "Caller",
    "ConfigAccess",
    "DependencyEvent",
    "DependencyEventKind",
    "ComponentInfo",
    "Report",
    "LogIntrospector",
]
