from .protocols import (
    Closer,
    Introspector,
    ReadinessProbe,
    Service,
    Setup,
    capabilities,
)

__all__ = [
    "Setup",
    "Service",
    "ReadinessProbe",
    "Closer",
    "Introspector",
    "capabilities",
]
