"""Configuration."""

from .config_service import ConfigService
from .settings import Settings

__all__ = ["ConfigService", "Settings"]
