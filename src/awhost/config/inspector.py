import logging
import math
import threading
from typing import Optional

from cachetools import Cache

from .providers import Provider, SourceProvider
from ..introspection import Caller, ConfigAccess
from ..reflection import type_name_of
from ..scope import Scope
from ..utils import maybe_await

logger = logging.getLogger(__name__)


class ProviderInspector:
    """
    Caching and access-recording wrapper around a configuration provider.

    The first successful lookup of a key is memoized; later lookups are
    served from the cache without calling the provider again. Every served
    value and every fallback to a caller's default is recorded.
    """

    def __init__(self, provider: Provider) -> None:
        self.provider = provider
        self.provider_name = type_name_of(provider)
        self._cache: Cache = Cache(maxsize=math.inf)
        self._lock = threading.Lock()
        self._accesses: dict[str, list[ConfigAccess]] = {}
        self._order = 0

    def _record(
            self,
            key: str,
            provider: str,
            used_default: bool,
            caller: Caller,
            component: str
    ) -> None:
        with self._lock:
            self._order += 1
            access = ConfigAccess(
                key=key,
                provider="" if used_default else provider,
                used_default=used_default,
                caller=caller,
                component=component,
                order=self._order,
            )
            self._accesses.setdefault(key, []).append(access)

    def _from_cache(self, key: str) -> Optional[tuple[str, str]]:
        with self._lock:
            return self._cache.get(key)

    async def _fetch(self, scope: Scope, key: str) -> tuple[str, str]:
        if isinstance(self.provider, SourceProvider):
            value, source = await maybe_await(self.provider.get_with_source(scope, key))
            return value, source
        return await maybe_await(self.provider.get(scope, key)), self.provider_name

    async def get(
            self,
            scope: Scope,
            key: str,
            has_default: bool = False,
            caller: Optional[Caller] = None,
            component: str = ""
    ) -> Optional[str]:
        """
        Look up a key.

        :param has_default: The caller can fall back to a default. Provider
            errors are then recorded as a default use and ``None`` is returned
            instead of raising.
        :return: The value, or ``None`` when the caller should use its default.
        """
        caller = caller or Caller()

        cached = self._from_cache(key)
        if cached is not None:
            value, source = cached
            self._record(key, source, False, caller, component)
            return value

        try:
            value, source = await self._fetch(scope, key)
        except Exception as err:
            if not has_default:
                raise
            logger.debug("Using default for config key '%s': %s", key, err)
            self._record(key, "", True, caller, component)
            return None

        with self._lock:
            self._cache[key] = (value, source)
        self._record(key, source, False, caller, component)
        return value

    def accesses(self) -> list[ConfigAccess]:
        """All recorded accesses sorted by key, file, line and order."""
        with self._lock:
            out = [access for accesses in self._accesses.values() for access in accesses]
        out.sort(key=lambda a: (a.key, a.caller.file, a.caller.line, a.order))
        return out
