"""
Introspection report.

A read-only snapshot of configuration accesses, dependency events and the
declared components, taken after every setup step finished and before any
service starts.
"""
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Code location that produced an event."""
    func: str = ""
    file: str = ""
    line: int = 0

    def __str__(self) -> str:
        location = f"{self.file}:{self.line}" if self.file else "unknown"
        return f"{self.func or 'unknown'} ({location})"


@dataclass(frozen=True)
class ConfigAccess:
    """A single configuration key access."""
    key: str
    provider: str  # empty when a default was used
    used_default: bool
    caller: Caller
    component: str = ""  # owning component type, when known
    order: int = 0


class DependencyEventKind(Enum):
    REGISTERED = "register"
    RESOLVED = "resolve"


@dataclass(frozen=True)
class DependencyEvent:
    """A dependency registration or resolution."""
    kind: DependencyEventKind
    type: str  # requested type name
    name: str  # empty for the unnamed slot
    impl: str  # concrete type of the stored value
    caller: Caller
    component: str = ""  # consumer type, when resolved through field injection
    order: int = 0


@dataclass(frozen=True)
class ComponentInfo:
    """A declared setup step or service."""
    type: str
    component: type


@dataclass(frozen=True)
class Report:
    configs: tuple[ConfigAccess, ...] = field(default_factory=tuple)
    deps: tuple[DependencyEvent, ...] = field(default_factory=tuple)
    services: tuple[ComponentInfo, ...] = field(default_factory=tuple)
    setups: tuple[ComponentInfo, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON compatible representation."""
        return {
            "configs": [asdict(access) for access in self.configs],
            "deps": [
                {**asdict(event), "kind": event.kind.value}
                for event in self.deps
            ],
            "services": [info.type for info in self.services],
            "setups": [info.type for info in self.setups],
        }


class LogIntrospector:
    """Introspector that writes the report to a logger."""

    def __init__(self, level: int = logging.INFO, target: logging.Logger = logger) -> None:
        self.level = level
        self.target = target

    def introspect(self, scope, report: Report) -> None:
        log = self.target.log
        log(self.level, "Setup steps: %s", ", ".join(info.type for info in report.setups) or "-")
        log(self.level, "Services: %s", ", ".join(info.type for info in report.services) or "-")
        for access in report.configs:
            source = "default" if access.used_default else access.provider
            log(self.level, "Config %s <- %s [%s] %s",
                access.key, source, access.component or "-", access.caller)
        for event in report.deps:
            name = f" '{event.name}'" if event.name else ""
            log(self.level, "Dependency %s %s%s (%s) [%s] %s",
                event.kind.value, event.type, name, event.impl, event.component or "-", event.caller)
