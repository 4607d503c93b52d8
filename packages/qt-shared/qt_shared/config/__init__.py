"""Configuration module for qt-mongo shared settings."""

from .settings import EXPLAIN_VERBOSITIES, Settings, get_settings

__all__ = ["Settings", "get_settings", "EXPLAIN_VERBOSITIES"]
