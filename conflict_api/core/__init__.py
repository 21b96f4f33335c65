"""Core app configuration, security, errors, and database wiring."""

from conflict_api.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
