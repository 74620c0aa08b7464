import logging
from pathlib import Path
from typing import Optional

import pydantic
import pydantic_settings as settings

from .providers import CompositeProvider, EnvProvider, FileProvider, Provider
from ..utils import expanded_path

logger = logging.getLogger(__name__)


class HostSettings(settings.BaseSettings):
    """Settings of the host process itself, read from ``AWHOST_*`` variables and ``.env``."""

    model_config = settings.SettingsConfigDict(
        env_prefix="AWHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True
    )

    config_path: Optional[Path] = pydantic.Field(
        default=None,
        description="YAML/JSON file consulted after the environment"
    )

    log_level: str = pydantic.Field(
        default="INFO",
        description="Level of the awhost loggers"
    )

    ready_timeout: float = pydantic.Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for every service to report ready"
    )

    @pydantic.field_validator("config_path", mode="before")
    @classmethod
    def validate_config_path(cls, v):
        if v is None or v == "":
            return None
        return expanded_path(v)

    @pydantic.field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{v}'")
        return level

    def build_provider(self) -> Provider:
        """Environment first, then the configuration file when one is set."""
        if self.config_path is None:
            return EnvProvider()
        logger.debug("Layering configuration file %s behind the environment", self.config_path)
        return CompositeProvider(EnvProvider(), FileProvider(self.config_path))
