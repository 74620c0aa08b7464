from .inspector import ProviderInspector
from .loaders import load_file
from .parsers import (
    NoParserForTypeError,
    parse,
    parser_for,
    register_parser,
    reset_parsers,
)
from .providers import (
    CompositeProvider,
    EnvProvider,
    FileProvider,
    MappingProvider,
    NotSetError,
    Provider,
    ProviderChainError,
    SourceProvider,
)
from .registry import accesses, inspector, reset_provider, set_provider
from .settings import HostSettings
from .setup import setup_logging
from .values import (
    Config,
    ConfigError,
    config_field_visitor,
    get,
    get_with_default,
    load_struct,
)

__all__ = [
    "ProviderInspector",
    "load_file",
    # Parsers
    "NoParserForTypeError",
    "parse",
    "parser_for",
    "register_parser",
    "reset_parsers",
    # Providers
    "CompositeProvider",
    "EnvProvider",
    "FileProvider",
    "MappingProvider",
    "NotSetError",
    "Provider",
    "ProviderChainError",
    "SourceProvider",
    # Active provider
    "accesses",
    "inspector",
    "reset_provider",
    "set_provider",
    # Values
    "Config",
    "ConfigError",
    "config_field_visitor",
    "get",
    "get_with_default",
    "load_struct",
    # Host
    "HostSettings",
    "setup_logging",
]
