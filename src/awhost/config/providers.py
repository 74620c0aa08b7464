import logging
import os
from pathlib import Path
from typing import Mapping, Protocol, Union, runtime_checkable

from .loaders import flatten, load_file
from ..reflection import type_name_of
from ..scope import Scope
from ..utils import expanded_path, maybe_await

logger = logging.getLogger(__name__)


class NotSetError(LookupError):
    """Raised by a provider when a key has no value."""


class ProviderChainError(LookupError):
    """Every provider of a CompositeProvider failed for a key."""

    def __init__(self, errors: list[tuple[str, Exception]]) -> None:
        self.errors = errors
        super().__init__("\n".join(f"{label}: {err}" for label, err in errors))


@runtime_checkable
class Provider(Protocol):
    """
    Retrieves configuration values by key.

    ``get`` may be a plain function or a coroutine function; it raises when
    the key cannot be served.
    """

    def get(self, scope: Scope, key: str) -> str: ...


@runtime_checkable
class SourceProvider(Protocol):
    """A provider that reports which inner source served a value."""

    def get_with_source(self, scope: Scope, key: str) -> tuple[str, str]: ...


class EnvProvider:
    """Reads values from the process environment, key names verbatim."""

    def get(self, scope: Scope, key: str) -> str:
        value = os.environ.get(key)
        if value is None:
            raise NotSetError(f"environment variable '{key}' is not set")
        return value


class MappingProvider:
    """Serves values from a static mapping."""

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = dict(values)

    def get(self, scope: Scope, key: str) -> str:
        try:
            return self._values[key]
        except KeyError:
            raise NotSetError(f"key '{key}' is not set") from None


class FileProvider:
    """
    Serves values from a YAML or JSON document.

    Nested mappings are addressed with dotted keys (``db.host``).
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = expanded_path(path)
        self._values = flatten(load_file(self.path))
        logger.debug("Loaded %d configuration keys from %s", len(self._values), self.path)

    def get(self, scope: Scope, key: str) -> str:
        try:
            return self._values[key]
        except KeyError:
            raise NotSetError(f"key '{key}' is not set in {self.path.name}") from None


class CompositeProvider:
    """
    Chains providers and returns the first value found.

    Providers are labelled by their type name unless passed as a
    ``(label, provider)`` tuple.
    """

    def __init__(self, *providers: Union[Provider, tuple[str, Provider]]) -> None:
        self._providers: list[tuple[str, Provider]] = []
        for provider in providers:
            if isinstance(provider, tuple):
                label, provider = provider
            else:
                label = type_name_of(provider)
            self._providers.append((label, provider))

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self._providers]

    async def get(self, scope: Scope, key: str) -> str:
        value, _ = await self.get_with_source(scope, key)
        return value

    async def get_with_source(self, scope: Scope, key: str) -> tuple[str, str]:
        errors: list[tuple[str, Exception]] = []
        for label, provider in self._providers:
            try:
                value = await maybe_await(provider.get(scope, key))
            except Exception as err:
                logger.debug("Provider %s could not serve '%s': %s", label, key, err)
                errors.append((label, err))
                continue
            return value, label
        raise ProviderChainError(errors)
