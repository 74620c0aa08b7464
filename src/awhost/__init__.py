"""
awhost - hosting of async setup steps and long running services.

This module provides a clean public surface for the framework.
Consumers should import from here for stable API access.
"""

from .api import *  # noqa: F401,F403
from .api import __all__  # noqa: F401
