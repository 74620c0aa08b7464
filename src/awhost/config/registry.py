import logging
import threading

from .inspector import ProviderInspector
from .providers import EnvProvider, Provider
from ..introspection import ConfigAccess
from ..reflection import type_name_of

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_INSPECTOR = ProviderInspector(EnvProvider())


def set_provider(provider: Provider) -> ProviderInspector:
    """
    Install the provider used by every configuration lookup.

    The provider is wrapped in a fresh inspector, so the value cache and the
    access log start empty.
    """
    global _INSPECTOR
    inspector = ProviderInspector(provider)
    with _lock:
        _INSPECTOR = inspector
    logger.debug("Configuration provider set to %s", type_name_of(provider))
    return inspector


def reset_provider() -> ProviderInspector:
    """Restore a fresh environment backed inspector."""
    logger.debug("Resetting configuration provider")
    return set_provider(EnvProvider())


def inspector() -> ProviderInspector:
    with _lock:
        return _INSPECTOR


def accesses() -> list[ConfigAccess]:
    """Every configuration access recorded by the active inspector."""
    return inspector().accesses()
