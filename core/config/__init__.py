"""Layered configuration (defaults -> defaults.ini -> environment -> machine -> user)."""

from core.config.config_service import ConfigService, get_config_service

__all__ = ["ConfigService", "get_config_service"]
